from django.test import SimpleTestCase

from builder.services.selection import (
    Import,
    InvalidAction,
    Remove,
    Reset,
    Select,
    SetAll,
    action_from_payload,
    dispatch,
    selected_count,
    toggle_peripheral,
)


class ReducerTests(SimpleTestCase):
    def test_select_sets_and_overwrites(self):
        state = dispatch({}, Select("cpu", "c1"))
        self.assertEqual(state, {"cpu": "c1"})
        self.assertEqual(dispatch(state, Select("cpu", "c2")), {"cpu": "c2"})

    def test_state_is_not_mutated(self):
        state = {"cpu": "c1"}
        dispatch(state, Select("gpu", "g1"))
        dispatch(state, Remove("cpu"))
        dispatch(state, Import({"cpu": ""}))
        self.assertEqual(state, {"cpu": "c1"})

    def test_remove_and_reset(self):
        state = {"cpu": "c1", "gpu": "g1"}
        self.assertEqual(dispatch(state, Remove("gpu")), {"cpu": "c1"})
        self.assertEqual(dispatch(state, Remove("ram")), state)
        self.assertEqual(dispatch(state, Reset()), {})

    def test_set_all_replaces(self):
        state = dispatch({"cpu": "c1"}, SetAll({"gpu": "g1"}))
        self.assertEqual(state, {"gpu": "g1"})

    def test_import_merges_and_strips_falsy(self):
        state = dispatch({"cpu": "c1"}, Import({"gpu": "g1", "ram": ""}))
        self.assertEqual(state, {"cpu": "c1", "gpu": "g1"})
        cleared = dispatch(state, Import({"cpu": None}))
        self.assertEqual(cleared, {"gpu": "g1"})

    def test_unknown_action_is_ignored(self):
        self.assertEqual(dispatch({"cpu": "c1"}, object()), {"cpu": "c1"})

    def test_selected_count(self):
        self.assertEqual(selected_count({}), 0)
        self.assertEqual(selected_count({"cpu": "c1", "gpu": "g1"}), 2)


class ActionParsingTests(SimpleTestCase):
    def test_parses_known_actions(self):
        self.assertEqual(
            action_from_payload({"type": "select", "category": "cpu", "id": 5}),
            Select("cpu", "5"),
        )
        self.assertEqual(
            action_from_payload({"type": "REMOVE", "category": "gpu"}),
            Remove("gpu"),
        )
        self.assertEqual(action_from_payload({"type": "RESET"}), Reset())
        self.assertEqual(
            action_from_payload({"type": "IMPORT", "payload": {"cpu": "c1"}}),
            Import({"cpu": "c1"}),
        )
        self.assertEqual(
            action_from_payload({"type": "SET_ALL"}), SetAll({})
        )

    def test_rejects_bad_actions(self):
        for bad in (
            [],
            {},
            {"type": "EXPLODE"},
            {"type": "SELECT", "category": "cpu"},
            {"type": "REMOVE"},
            {"type": "IMPORT", "payload": ["cpu"]},
        ):
            with self.assertRaises(InvalidAction):
                action_from_payload(bad)
        self.assertTrue(issubclass(InvalidAction, ValueError))

    def test_payload_keys_must_be_main_categories(self):
        for action_type in ("SET_ALL", "IMPORT"):
            with self.assertRaises(InvalidAction):
                action_from_payload(
                    {"type": action_type, "payload": {"keyboard": "k1"}}
                )
            with self.assertRaises(InvalidAction):
                action_from_payload(
                    {"type": action_type, "payload": {"cpu": ["c1"]}}
                )
        # falsy values stay allowed so IMPORT can strip them
        self.assertEqual(
            action_from_payload(
                {"type": "IMPORT", "payload": {"cpu": "c1", "gpu": None}}
            ),
            Import({"cpu": "c1", "gpu": None}),
        )


class PeripheralToggleTests(SimpleTestCase):
    def test_toggle_adds_then_removes(self):
        start = {}
        added = toggle_peripheral(start, "mouse", "m1")
        self.assertEqual(added, {"mouse": ["m1"]})
        both = toggle_peripheral(added, "mouse", "m2")
        self.assertEqual(both, {"mouse": ["m1", "m2"]})
        removed = toggle_peripheral(both, "mouse", "m1")
        self.assertEqual(removed, {"mouse": ["m2"]})
        self.assertEqual(toggle_peripheral(removed, "mouse", "m2"), {})
        # inputs untouched
        self.assertEqual(start, {})
        self.assertEqual(both, {"mouse": ["m1", "m2"]})
