# -*- coding: utf-8 -*-
"""
Tests for the batch driver: in-place and output-dir rewrites, dry runs,
fatal aborts and resource sync.
"""
from __future__ import annotations

import json
import pathlib
import tempfile
import textwrap
import unittest
from unittest import mock

from i18n_migrate.config import MigrateConfig
from i18n_migrate.core.coordinator import RewriteCoordinator
from i18n_migrate.errors import CorruptPersistedStore, UnsupportedReplacementContext
from i18n_migrate.migrator import Migrator


class MigratorTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = pathlib.Path(self._tmp.name)
        self.src = self.tmp / "src"
        self.src.mkdir()
        self.locales = self.tmp / "locales"

    def tearDown(self):
        self._tmp.cleanup()

    def config(self, **options):
        options.setdefault("resource_dir", str(self.locales))
        options.setdefault(
            "locale_paths",
            (str(self.locales / "zh" / "default.json"), str(self.locales / "en" / "default.json")),
        )
        return MigrateConfig(**options)

    def write(self, name, text):
        path = self.src / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text), encoding="utf-8")
        return path

    def read_json(self, path):
        return json.loads(pathlib.Path(path).read_text(encoding="utf-8"))


class TestExtract(MigratorTestCase):

    def test_rewrites_in_place_and_writes_resources(self):
        app = self.write("App.jsx", 'const el = <p title="标题">你好</p>;\n')
        util = self.write("util.js", 'export const hi = "hello";\n')

        report = Migrator(self.config()).extract([self.src])

        self.assertEqual(report.scanned, 2)
        self.assertEqual(report.changed, 1)
        self.assertEqual(report.extracted, ["k1", "k2"])
        self.assertEqual(app.read_text(encoding="utf-8"), "const el = <p title={i18n.t('k1')}>{i18n.t('k2')}</p>;\n")
        self.assertEqual(util.read_text(encoding="utf-8"), 'export const hi = "hello";\n')
        self.assertEqual(len(list(self.src.glob("App.jsx.*.bak"))), 1)

        source = self.read_json(self.locales / "source.json")
        self.assertEqual(source["meta"], {"nextKeyNum": 3})
        self.assertEqual(source["data"]["k1"]["sourceMeta"]["file"], "App.jsx")
        self.assertEqual(
            self.read_json(self.locales / "zh" / "default.json"),
            {"k1": "标题", "k2": "你好"},
        )
        self.assertTrue((self.locales / "en" / "default.json").exists())

    def test_second_run_changes_nothing(self):
        app = self.write("App.jsx", 'const s = "你好" + name;\n')
        Migrator(self.config(backup=False)).extract([self.src])
        first = app.read_text(encoding="utf-8")

        report = Migrator(self.config(backup=False)).extract([self.src])

        self.assertEqual(report.changed, 0)
        self.assertEqual(app.read_text(encoding="utf-8"), first)
        self.assertEqual(self.read_json(self.locales / "source.json")["meta"]["nextKeyNum"], 2)

    def test_new_string_gets_a_higher_key(self):
        app = self.write("App.jsx", 'const a = "你好";\n')
        Migrator(self.config(backup=False)).extract([self.src])
        app.write_text(app.read_text(encoding="utf-8") + 'const b = "再见";\n', encoding="utf-8")

        Migrator(self.config(backup=False)).extract([self.src])

        self.assertEqual(
            app.read_text(encoding="utf-8"),
            "const a = i18n.t('k1');\nconst b = i18n.t('k2');\n",
        )
        data = self.read_json(self.locales / "source.json")["data"]
        self.assertEqual({k: v["template"] for k, v in data.items()}, {"k1": "你好", "k2": "再见"})

    def test_dry_run_with_diff_writes_nothing(self):
        app = self.write("App.jsx", 'alert("你好");\n')
        report = Migrator(self.config()).extract([self.src], dry=True, emit_diff=True)

        self.assertEqual(app.read_text(encoding="utf-8"), 'alert("你好");\n')
        self.assertFalse((self.locales / "source.json").exists())
        self.assertEqual(len(report.diffs), 1)
        self.assertIn("+alert(i18n.t('k1'));", report.diffs[0])

    def test_output_dir_mode_leaves_sources(self):
        out = self.tmp / "out"
        self.write("pages/Home.jsx", 'alert("你好");\n')
        self.write("plain.js", "alert(1);\n")

        Migrator(self.config(rewrite=False, output_dir=str(out))).extract([self.src])

        self.assertEqual((self.src / "pages" / "Home.jsx").read_text(encoding="utf-8"), 'alert("你好");\n')
        self.assertEqual((out / "pages" / "Home.jsx").read_text(encoding="utf-8"), "alert(i18n.t('k1'));\n")
        self.assertEqual((out / "plain.js").read_text(encoding="utf-8"), "alert(1);\n")
        self.assertEqual(list(self.src.rglob("*.bak")), [])

    def test_syntax_error_skips_only_that_file(self):
        self.write("bad.js", 'const s = "中文" +;\n')
        good = self.write("good.js", 'alert("你好");\n')

        report = Migrator(self.config(backup=False)).extract([self.src])

        self.assertEqual(report.skipped_files, 1)
        self.assertEqual(good.read_text(encoding="utf-8"), "alert(i18n.t('k1'));\n")

    def test_ignored_directories(self):
        self.write("node_modules/lib/index.js", 'alert("中文");\n')
        report = Migrator(self.config()).extract([self.src])
        self.assertEqual(report.scanned, 0)

    def test_fatal_context_keeps_earlier_files_and_reserved_keys(self):
        first = self.write("a.jsx", 'alert("一");\n')
        second = self.write("b.jsx", 'alert("二");\n')
        replace = RewriteCoordinator.replacement_for

        def fail_on_b(coordinator, root, call):
            if coordinator.document.display_path == "b.jsx":
                raise UnsupportedReplacementContext("cannot replace", snippet='"二"')
            return replace(coordinator, root, call)

        with mock.patch.object(RewriteCoordinator, "replacement_for", fail_on_b):
            with self.assertRaises(UnsupportedReplacementContext):
                Migrator(self.config(backup=False)).extract([self.src])

        self.assertEqual(first.read_text(encoding="utf-8"), "alert(i18n.t('k1'));\n")
        self.assertEqual(second.read_text(encoding="utf-8"), 'alert("二");\n')
        source = self.read_json(self.locales / "source.json")
        self.assertEqual(list(source["data"]), ["k1"])
        self.assertEqual(source["meta"]["nextKeyNum"], 3)

    def test_corrupt_source_map_aborts_before_any_write(self):
        self.locales.mkdir()
        (self.locales / "source.json").write_text('{"data": {}}', encoding="utf-8")
        app = self.write("App.jsx", 'alert("你好");\n')

        with self.assertRaises(CorruptPersistedStore):
            Migrator(self.config()).extract([self.src])
        self.assertEqual(app.read_text(encoding="utf-8"), 'alert("你好");\n')


class TestSync(MigratorTestCase):

    def seed(self):
        self.locales.mkdir()
        (self.locales / "source.json").write_text(
            json.dumps({
                "data": {"k1": {"template": "你好"}, "k2": {"template": "再见"}},
                "meta": {"nextKeyNum": 4},
            }, ensure_ascii=False),
            encoding="utf-8",
        )
        en = self.locales / "en.json"
        en.write_text(json.dumps({"k1": "Hello", "k2": "Bye"}), encoding="utf-8")
        self.write("App.jsx", "alert(i18n.t('k1')); confirm(i18n.t('k3'));\n")
        return en

    def test_additive_sync(self):
        en = self.seed()
        report = Migrator(self.config()).sync([self.src], locale_paths=[str(en)])

        self.assertEqual(report.merge.added, ["k3"])
        self.assertEqual(report.merge.removed, [])
        data = self.read_json(self.locales / "source.json")["data"]
        self.assertEqual(data["k3"]["template"], "k3")
        self.assertIn("k2", data)
        self.assertEqual(self.read_json(en), {"k1": "Hello", "k2": "Bye", "k3": "k3"})

    def test_clean_sync_prunes_but_keeps_counter(self):
        en = self.seed()
        report = Migrator(self.config()).sync([self.src], clean=True, locale_paths=[str(en)])

        self.assertEqual(report.merge.removed, ["k2"])
        source = self.read_json(self.locales / "source.json")
        self.assertEqual(sorted(source["data"]), ["k1", "k3"])
        self.assertEqual(source["meta"]["nextKeyNum"], 4)
        self.assertEqual(self.read_json(en), {"k1": "Hello", "k3": "k3"})

    def test_unknown_key_above_counter_is_corrupt(self):
        self.seed()
        self.write("Other.jsx", "alert(i18n.t('k9'));\n")
        with self.assertRaises(CorruptPersistedStore):
            Migrator(self.config()).sync([self.src])


if __name__ == "__main__":
    unittest.main()
