import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from nbstruct.build import (
    new_code_cell,
    new_display_data,
    new_error,
    new_execute_result,
    new_markdown_cell,
    new_notebook,
    new_raw_cell,
    random_cell_id,
)
from nbstruct.config import Config, Policy, WriterOptions, config_from_mapping, load_config
from nbstruct.errors import ConfigError
from nbstruct.model import CodeCell, RawCell
from nbstruct.parse import load
from nbstruct.serialize import to_dict


class TestConfig(unittest.TestCase):
    def test_load_yaml(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "nbstruct.yaml"
            p.write_text(
                "policy:\n"
                "  misplaced_fields: ignore\n"
                "  require_cell_ids: null\n"
                "writer:\n"
                "  multiline: string\n"
                "  indent: 2\n",
                encoding="utf-8",
            )
            cfg = load_config(p)
        self.assertEqual(cfg.policy, Policy(misplaced_fields="ignore"))
        self.assertEqual(cfg.writer, WriterOptions(multiline="string", indent=2))

    def test_empty_file_gives_defaults(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "nbstruct.yaml"
            p.write_text("", encoding="utf-8")
            self.assertEqual(load_config(p), Config())

    def test_invalid_yaml(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "nbstruct.yaml"
            p.write_text("policy: [unclosed\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(p)

    def test_rejects_unknown_and_bad_values(self):
        with self.assertRaises(ConfigError):
            config_from_mapping({"policy": {"strictness": 3}})
        with self.assertRaises(ConfigError):
            config_from_mapping({"logging": {}})
        with self.assertRaises(ConfigError):
            config_from_mapping({"writer": {"multiline": "columns"}})
        with self.assertRaises(ConfigError):
            config_from_mapping({"writer": {"indent": -1}})
        with self.assertRaises(ConfigError):
            config_from_mapping({"policy": {"require_cell_ids": "yes"}})

    def test_ids_required_by_version(self):
        self.assertTrue(Policy().ids_required(4, 5))
        self.assertFalse(Policy().ids_required(4, 4))
        self.assertTrue(Policy(require_cell_ids=True).ids_required(4, 0))


class TestBuild(unittest.TestCase):
    def test_random_cell_id(self):
        cid = random_cell_id()
        self.assertEqual(len(cid), 8)
        self.assertNotEqual(cid, random_cell_id())

    def test_builders_produce_wire_documents(self):
        nb = new_notebook(
            [
                new_raw_cell("\\section{A}", id="r", format="text/latex"),
                new_code_cell(
                    "1 + 1",
                    id="c",
                    outputs=[
                        new_execute_result(3, {"text/plain": "2"}),
                        new_display_data({"text/plain": "a\nb"}),
                        new_error("ZeroDivisionError", "division by zero", ["tb"]),
                    ],
                    execution_count=3,
                ),
                new_markdown_cell("*hi*", id="m"),
            ],
            kernel_name="python3",
            display_name="Python 3",
        )
        out = to_dict(nb)
        self.assertEqual((out["nbformat"], out["nbformat_minor"]), (4, 5))
        self.assertEqual(out["metadata"]["kernelspec"], {"name": "python3", "display_name": "Python 3"})
        self.assertEqual(out["cells"][0]["metadata"], {"format": "text/latex"})
        self.assertEqual(out["cells"][1]["outputs"][1]["data"], {"text/plain": ["a\n", "b"]})

        back = load(out)
        self.assertIsInstance(back.cells[0], RawCell)
        self.assertIsInstance(back.cells[1], CodeCell)
        self.assertEqual(back, nb)
        self.assertEqual(back.cell_by_id()["c"].execution_count, 3)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
