"""
Tests for SessionStorage and the session-state helpers.
"""
import unittest

from state.session_storage import SessionStorage, ss_get, ss_init


class TestSessionStorage(unittest.TestCase):
    def setUp(self):
        self.backing = {}
        self.storage = SessionStorage(backing=self.backing)

    def test_json_values_are_stored_as_strings(self):
        self.storage.set_json("groupMode-turkey", True)

        self.assertEqual(self.backing["sessionStorage:groupMode-turkey"], "true")
        self.assertIs(self.storage.get_json("groupMode-turkey"), True)

    def test_missing_key_returns_default(self):
        self.assertEqual(self.storage.get_json("nope", default={"a": 1}), {"a": 1})
        self.assertIsNone(self.storage.get_item("nope"))

    def test_malformed_json_reads_as_absent(self):
        self.storage.set_item("filters-turkey", "{not json")

        with self.assertLogs("state.session_storage", level="WARNING"):
            self.assertEqual(self.storage.get_json("filters-turkey", default={}), {})

    def test_remove_and_has_item(self):
        self.storage.set_item("banknote-detail-id", "42")
        self.assertTrue(self.storage.has_item("banknote-detail-id"))

        self.storage.remove_item("banknote-detail-id")
        self.storage.remove_item("banknote-detail-id")
        self.assertFalse(self.storage.has_item("banknote-detail-id"))

    def test_clear_only_touches_prefixed_keys(self):
        self.backing["widget_key"] = 1
        self.storage.set_json("a", 1)
        self.storage.set_json("b", 2)

        self.assertEqual(sorted(self.storage.keys()), ["a", "b"])
        self.storage.clear()

        self.assertEqual(self.storage.keys(), [])
        self.assertEqual(self.backing, {"widget_key": 1})


class TestSessionHelpers(unittest.TestCase):
    def test_ss_init_does_not_overwrite(self):
        store = {"existing": "keep"}
        ss_init({"existing": "new", "fresh": 0}, store=store)
        self.assertEqual(store, {"existing": "keep", "fresh": 0})

    def test_ss_get_treats_none_as_missing(self):
        store = {"user_id": None}
        self.assertEqual(ss_get("user_id", "anon", store=store), "anon")
        self.assertEqual(ss_get("other", 3, store=store), 3)


if __name__ == "__main__":
    unittest.main()
