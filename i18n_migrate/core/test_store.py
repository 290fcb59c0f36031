# -*- coding: utf-8 -*-
"""
Tests for the persisted source map and locale file sync.
"""
from __future__ import annotations

import json
import pathlib
import tempfile
import unittest

from i18n_migrate.core.document import SourceMeta
from i18n_migrate.core.store import (
    ResourceStore,
    TranslationEntry,
    merge_mappings,
    read_json_strict,
    sync_locale_file,
)
from i18n_migrate.errors import CorruptPersistedStore


def entry(key, template):
    return TranslationEntry(key, template, SourceMeta("src/a.js", 1, 0))


class TestMerge(unittest.TestCase):

    def test_additive_merge_keeps_stale_keys(self):
        old = {"k1": "A", "k2": "B"}
        report = merge_mappings(old, {"k1": "A", "k3": "C"})
        self.assertEqual(old, {"k1": "A", "k2": "B", "k3": "C"})
        self.assertEqual(report.added, ["k3"])
        self.assertEqual(report.removed, [])

    def test_prune_drops_stale_keys(self):
        old = {"k1": "A", "k2": "B"}
        report = merge_mappings(old, {"k1": "A", "k3": "C"}, prune=True)
        self.assertEqual(old, {"k1": "A", "k3": "C"})
        self.assertEqual(report.removed, ["k2"])
        self.assertEqual(report.count, 2)

    def test_existing_values_are_not_overwritten(self):
        old = {"k1": "Hello"}
        merge_mappings(old, {"k1": "你好"})
        self.assertEqual(old["k1"], "Hello")


class TestResourceStore(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = pathlib.Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, name, text):
        path = self.tmp / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_missing_file_is_a_fresh_store(self):
        store = ResourceStore.load(self.tmp / "source.json")
        self.assertEqual(store.next_key_num, 1)
        self.assertEqual(store.allocate_key("你好"), "k1")
        self.assertEqual(store.allocate_key("你好"), "k2")
        self.assertEqual(store.next_key_num, 3)

    def test_save_and_reload_keeps_counter(self):
        path = self.tmp / "locales" / "source.json"
        store = ResourceStore.load(path)
        store.add(entry(store.allocate_key("你好{val0}"), "你好{val0}"))
        store.save()

        payload = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(payload["meta"], {"nextKeyNum": 2})
        self.assertEqual(payload["data"]["k1"]["template"], "你好{val0}")
        self.assertEqual(payload["data"]["k1"]["sourceMeta"], {"file": "src/a.js", "line": 1, "column": 0})
        self.assertIn("你好", path.read_text(encoding="utf-8"))

        again = ResourceStore.load(path)
        self.assertEqual(again.allocate_key("再见"), "k2")

    def test_counter_survives_pruning(self):
        store = ResourceStore({"k1": entry("k1", "一"), "k2": entry("k2", "二")}, next_key_num=3)
        store.merge({"k1": entry("k1", "一")}, prune=True)
        self.assertEqual(list(store.data), ["k1"])
        self.assertEqual(store.allocate_key("三"), "k3")

    def test_missing_meta_is_corrupt(self):
        path = self.write("source.json", '{"data": {}}')
        with self.assertRaises(CorruptPersistedStore):
            ResourceStore.load(path)

    def test_invalid_json_is_corrupt(self):
        path = self.write("source.json", '{"data": {')
        with self.assertRaises(CorruptPersistedStore) as ctx:
            ResourceStore.load(path)
        self.assertEqual(ctx.exception.path, path)

    def test_duplicate_keys_are_corrupt(self):
        path = self.write(
            "source.json",
            '{"data": {"k1": {"template": "一"}, "k1": {"template": "二"}}, "meta": {"nextKeyNum": 2}}',
        )
        with self.assertRaises(CorruptPersistedStore):
            read_json_strict(path)

    def test_key_at_or_above_counter_is_corrupt(self):
        path = self.write("source.json", '{"data": {"k5": {"template": "一"}}, "meta": {"nextKeyNum": 5}}')
        with self.assertRaises(CorruptPersistedStore):
            ResourceStore.load(path)

    def test_foreign_keys_do_not_count_against_counter(self):
        payload = {"data": {"home.title": {"template": "首页"}}, "meta": {"nextKeyNum": 1}}
        store = ResourceStore.from_dict(payload)
        self.assertEqual(store.project(), {"home.title": "首页"})

    def test_add_refuses_existing_key(self):
        store = ResourceStore({"k1": entry("k1", "一")}, next_key_num=2)
        with self.assertRaises(CorruptPersistedStore):
            store.add(entry("k1", "二"))


class TestLocaleSync(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = pathlib.Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_creates_missing_locale_file(self):
        path = self.tmp / "zh" / "default.json"
        report = sync_locale_file(path, {"k1": "你好"})
        self.assertEqual(report.added, ["k1"])
        self.assertEqual(json.loads(path.read_text(encoding="utf-8")), {"k1": "你好"})

    def test_keeps_translations_and_prunes_on_clean(self):
        path = self.tmp / "en.json"
        path.write_text(json.dumps({"k1": "Hello", "k2": "Bye"}), encoding="utf-8")
        report = sync_locale_file(path, {"k1": "你好", "k3": "谢谢"}, clean=True)
        self.assertEqual(report.to_dict(), {"added": ["k3"], "removed": ["k2"]})
        self.assertEqual(json.loads(path.read_text(encoding="utf-8")), {"k1": "Hello", "k3": "谢谢"})

    def test_dry_run_writes_nothing(self):
        path = self.tmp / "en.json"
        report = sync_locale_file(path, {"k1": "你好"}, dry=True)
        self.assertEqual(report.added, ["k1"])
        self.assertFalse(path.exists())


if __name__ == "__main__":
    unittest.main()
