"""Tests for decision traces and the recorder."""

from evosym.config import CreatureConfig
from evosym.decisions import CreatureActions, DecisionRecorder, DecisionTrace


def _trace(creature_id, tick, eat=0.0, attack=0.0, reproduce=0.0):
    actions = CreatureActions(0.0, 0.0, eat, attack, reproduce)
    return DecisionTrace(creature_id, tick, 0, [0.5] * 14,
                         [0.0, 0.0, eat, attack, reproduce], actions, 100.0)


class TestCreatureActions:
    def test_from_outputs(self):
        actions = CreatureActions.from_outputs([0.1, -0.2, 0.9, 0.0, 0.4])
        assert actions.move_y == -0.2
        assert actions.eat == 0.9
        assert actions.to_dict()['reproduce'] == 0.4


class TestDecisionRecorder:
    def test_history_is_bounded(self):
        recorder = DecisionRecorder(history_length=3)
        for tick in range(5):
            recorder.record_decision(_trace("a", tick))
        assert [t.tick for t in recorder.get_history("a")] == [2, 3, 4]
        assert recorder.get_latest("a").tick == 4

    def test_unknown_creature(self):
        recorder = DecisionRecorder()
        assert recorder.get_history("nobody") == []
        assert recorder.get_latest("nobody") is None
        assert recorder.action_frequencies("nobody") == {'eat': 0.0, 'attack': 0.0, 'reproduce': 0.0}

    def test_action_frequencies(self):
        recorder = DecisionRecorder()
        recorder.record_decision(_trace("a", 0, eat=0.9, reproduce=0.5))
        recorder.record_decision(_trace("a", 1, eat=0.2, attack=0.8))
        recorder.record_decision(_trace("a", 2, eat=0.6))
        recorder.record_decision(_trace("a", 3))

        freq = recorder.action_frequencies("a")
        assert freq == {'eat': 0.5, 'attack': 0.25, 'reproduce': 0.25}

    def test_action_frequencies_follow_config(self):
        recorder = DecisionRecorder()
        recorder.record_decision(_trace("a", 0, eat=0.6, attack=0.5))
        recorder.record_decision(_trace("a", 1, eat=0.3, reproduce=0.2))

        config = CreatureConfig(eat_threshold=0.7, attack_threshold=0.4, reproduce_threshold=0.1)
        assert recorder.action_frequencies("a", config) == {'eat': 0.0, 'attack': 0.5, 'reproduce': 0.5}

    def test_forget(self):
        recorder = DecisionRecorder()
        recorder.record_decision(_trace("a", 0))
        recorder.record_decision(_trace("b", 0))
        recorder.forget("a")
        assert len(recorder) == 1
        recorder.clear()
        assert len(recorder) == 0
