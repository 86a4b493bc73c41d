import pytest

from flash.core import db
from flash.core.cardbox import Cardbox, StageCounts
from flash.core.db import StageRecord
from flash.core.errors import DataIntegrityError, StageError
from conftest import TEST_COOLDOWNS, make_card


def new_cardbox(config, clock, cards, progress=None):
    cardbox = Cardbox(config, clock=clock)
    cardbox.init(cards, progress or {})
    return cardbox


def test_init_without_progress_fills_stage_one(config, clock):
    cards = [make_card(i) for i in range(20)]
    cardbox = new_cardbox(config, clock, cards)

    assert cardbox.progress() == StageCounts(17, 3, 0, 0, 0, 0)
    assert cardbox.size() == 20
    assert cardbox.num_active() == 3
    assert cardbox.cards(1) == cards[:3]
    assert cardbox.cards(0) == cards[3:]
    assert all(e.timestamp == clock.now for e in cardbox.envelopes(1))


def test_init_with_fewer_cards_than_queue_size(config, clock):
    cardbox = new_cardbox(config, clock, [make_card(1), make_card(2)])
    assert cardbox.progress() == StageCounts(0, 2, 0, 0, 0, 0)


def test_init_restores_recorded_stages(config, clock):
    cards = [make_card(i) for i in range(6)]
    progress = {
        cards[1].fingerprint: StageRecord(2, 111),
        cards[3].fingerprint: StageRecord(5, 333),
        cards[4].fingerprint: StageRecord(2, 444),
    }
    cardbox = new_cardbox(config, clock, cards, progress)

    assert cardbox.cards(2) == [cards[1], cards[4]]
    assert cardbox.cards(5) == [cards[3]]
    assert [e.timestamp for e in cardbox.envelopes(2)] == [111, 444]
    assert cardbox.cards(1) == [cards[0], cards[2], cards[5]]
    assert cardbox.size() == 6


def test_progress_survives_face_and_note_edits(config, clock):
    card = make_card(1)
    progress = {card.fingerprint: StageRecord(3, 5)}
    edited = make_card(1, face="fixed typo", note="new note")
    cardbox = new_cardbox(config, clock, [edited], progress)
    assert cardbox.cards(3) == [edited]


@pytest.mark.parametrize("stage", [0, 6, 42])
def test_init_rejects_invalid_recorded_stage(config, clock, stage):
    card = make_card(1)
    with pytest.raises(DataIntegrityError):
        new_cardbox(config, clock, [card], {card.fingerprint: StageRecord(stage, 1)})


def test_duplicate_fingerprints_are_logged(config, clock, caplog):
    cards = [make_card(1, face="one"), make_card(1, face="same back")]
    new_cardbox(config, clock, cards)
    assert "share fingerprint" in caplog.text


def test_next_returns_front_of_stage_one(config, clock):
    cards = [make_card(i) for i in range(5)]
    cardbox = new_cardbox(config, clock, cards)
    assert cardbox.next() == (cards[0], 1)
    # next() does not remove the card
    assert cardbox.next() == (cards[0], 1)


def test_next_prefers_higher_stages(config, clock):
    cards = [make_card(i) for i in range(4)]
    progress = {
        cards[1].fingerprint: StageRecord(2, clock.now - 60_000),
        cards[2].fingerprint: StageRecord(4, clock.now - 180_000),
    }
    cardbox = new_cardbox(config, clock, cards, progress)
    assert cardbox.next() == (cards[2], 4)


def test_next_only_looks_at_queue_front(config, clock):
    cards = [make_card(i) for i in range(2)]
    progress = {
        cards[0].fingerprint: StageRecord(3, clock.now),
        cards[1].fingerprint: StageRecord(3, clock.now - 10 * 120_000),
    }
    cardbox = new_cardbox(config, clock, cards, progress)
    # the second card is long overdue but waits behind the first one
    assert cardbox.next() is None
    clock.tick(120_000)
    assert cardbox.next() == (cards[0], 3)


def test_next_respects_stage_five_cooldown_boundary(config, clock):
    card = make_card(1)
    stamp = 5_000_000
    cardbox = new_cardbox(config, clock, [card], {card.fingerprint: StageRecord(5, stamp)})
    assert cardbox.envelopes(5)[0].timestamp == stamp

    cooldown = TEST_COOLDOWNS[4] * 1000
    clock.now = stamp + cooldown - 1
    assert cardbox.next() is None
    clock.now = stamp + cooldown
    assert cardbox.next() == (card, 5)


def test_advance_from_stage_one_tops_up(config, clock):
    cards = [make_card(i) for i in range(20)]
    cardbox = new_cardbox(config, clock, cards)

    for _ in range(3):
        _, stage = cardbox.next()
        assert stage == 1
        cardbox.advance(stage)
        assert cardbox.progress().stage1 == 3

    assert cardbox.progress() == StageCounts(14, 3, 3, 0, 0, 0)
    assert cardbox.cards(2) == cards[:3]
    assert cardbox.cards(1) == cards[3:6]


def test_advanced_card_waits_for_its_cooldown(config, clock):
    card = make_card(1)
    cardbox = new_cardbox(config, clock, [card])
    cardbox.advance(1)
    assert cardbox.next() is None
    assert cardbox.next_due_in() == TEST_COOLDOWNS[1] * 1000

    clock.tick(TEST_COOLDOWNS[1] * 1000)
    assert cardbox.next() == (card, 2)
    assert cardbox.next_due_in() == 0


def test_advance_refreshes_timestamp(config, clock):
    cardbox = new_cardbox(config, clock, [make_card(1)])
    clock.tick(5000)
    cardbox.advance(1)
    assert cardbox.envelopes(2)[0].timestamp == clock.now


def test_advance_from_stage_five_stays_in_stage_five(config, clock):
    cards = [make_card(1), make_card(2)]
    progress = {c.fingerprint: StageRecord(5, 0) for c in cards}
    cardbox = new_cardbox(config, clock, cards, progress)

    cardbox.advance(5)
    assert cardbox.cards(5) == [cards[1], cards[0]]
    assert cardbox.envelopes(5)[1].timestamp == clock.now
    assert cardbox.size() == 2


@pytest.mark.parametrize("stage", [1, 2, 3, 4, 5])
def test_reset_sends_card_back_to_stage_one(config, clock, stage):
    cards = [make_card(i) for i in range(3)]
    progress = {
        cards[0].fingerprint: StageRecord(1, 0),
        cards[1].fingerprint: StageRecord(stage, 0),
    }
    cardbox = new_cardbox(config, clock, cards, progress)
    clock.tick(1)

    cardbox.reset(stage)
    assert cardbox.cards(1)[-1] == (cards[1] if stage != 1 else cards[0])
    assert cardbox.envelopes(1)[-1].timestamp == clock.now
    assert cardbox.size() == 3


def test_reset_does_not_top_up(config, clock):
    cards = [make_card(i) for i in range(5)]
    cardbox = new_cardbox(config, clock, cards)
    cardbox.reset(1)
    assert cardbox.progress() == StageCounts(2, 3, 0, 0, 0, 0)
    assert cardbox.cards(1) == [cards[1], cards[2], cards[0]]


@pytest.mark.parametrize("stage", [0, 6, -1, True, 1.0])
def test_invalid_stage_is_rejected(config, clock, stage):
    cardbox = new_cardbox(config, clock, [make_card(1)])
    with pytest.raises(StageError):
        cardbox.advance(stage)
    with pytest.raises(StageError):
        cardbox.reset(stage)
    assert cardbox.size() == 1


def test_empty_stage_is_rejected(config, clock):
    cardbox = new_cardbox(config, clock, [make_card(1)])
    with pytest.raises(StageError, match="no flashcard"):
        cardbox.advance(3)
    with pytest.raises(StageError):
        cardbox.reset(2)


def test_next_returns_none_for_empty_cardbox(config, clock):
    cardbox = new_cardbox(config, clock, [])
    assert cardbox.next() is None
    assert cardbox.next_due_in() is None


def test_save_and_reload_round_trip(config, clock, tmp_path):
    path = tmp_path / "progress.db"
    cards = [make_card(i) for i in range(6)]
    cardbox = new_cardbox(config, clock, cards)
    cardbox.advance(1)
    cardbox.advance(1)
    clock.tick(TEST_COOLDOWNS[1] * 1000)
    cardbox.advance(2)
    cardbox.save(path)

    loaded = db.load(path)
    assert loaded == cardbox.records()
    assert len(loaded) == 5
    assert loaded[cards[0].fingerprint].index == 3
    assert cards[5].fingerprint not in loaded

    restored = Cardbox(config, clock=clock)
    restored.init(cards, loaded)
    assert restored.progress() == cardbox.progress()
    assert restored.records() == cardbox.records()


def test_save_drops_records_of_removed_cards(config, clock, tmp_path):
    path = tmp_path / "progress.db"
    card = make_card(1)
    db.save({card.fingerprint: StageRecord(2, 7), 12345: StageRecord(4, 8)}, path)

    cardbox = new_cardbox(config, clock, [card], db.load(path))
    cardbox.save(path)
    assert db.load(path) == {card.fingerprint: StageRecord(2, 7)}


def test_debug_settings_compress_cooldowns(clock):
    from flash.core.config import DEBUG_COOLDOWNS, Settings

    cardbox = Cardbox(Settings(_env_file=None, debug=True), clock=clock)
    assert cardbox.cooldowns == [s * 1000 for s in DEBUG_COOLDOWNS]
