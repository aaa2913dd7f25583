import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from nbstruct.cli import main

EXAMPLE = Path(__file__).resolve().parents[1] / "examples" / "minimal.ipynb"

BROKEN = {
    "nbformat": 4,
    "nbformat_minor": 5,
    "metadata": {},
    "cells": [
        {"id": "a", "cell_type": "markdown", "metadata": {"tags": ["x", "x"]}, "source": ""},
        {"id": "a", "cell_type": "sql", "metadata": {}, "source": ""},
    ],
}


def run(argv):
    buf = io.StringIO()
    with redirect_stdout(buf):
        rc = main(argv)
    return rc, buf.getvalue()


class TestCLISmoke(unittest.TestCase):
    def test_validate_ok(self):
        rc, out = run(["validate", str(EXAMPLE)])
        self.assertEqual(rc, 0)
        self.assertIn("OK:", out)
        self.assertIn("4 cells", out)

    def test_validate_lists_every_violation(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "broken.ipynb"
            p.write_text(json.dumps(BROKEN), encoding="utf-8")
            rc, out = run(["validate", str(p)])
        self.assertEqual(rc, 1)
        lines = out.strip().splitlines()
        self.assertEqual(len(lines), 4)
        self.assertTrue(lines[0].startswith("UniquenessError: cells[0].metadata.tags[1]"))
        self.assertTrue(any(line.startswith("DiscriminantError: cells[1].cell_type") for line in lines))
        self.assertTrue(any("cells 0 and 1" in line for line in lines))
        self.assertTrue(lines[-1].startswith("FAIL: 3 violation(s)"))

    def test_validate_with_schema(self):
        rc, out = run(["validate", "--schema", str(EXAMPLE)])
        self.assertEqual(rc, 0, out)

    def test_config_relaxes_policy(self):
        value = {
            "nbformat": 4,
            "nbformat_minor": 5,
            "metadata": {},
            "cells": [{"id": "a", "cell_type": "markdown", "metadata": {}, "source": "", "outputs": []}],
        }
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "nb.ipynb"
            p.write_text(json.dumps(value), encoding="utf-8")
            cfg = Path(td) / "nbstruct.yaml"
            cfg.write_text("policy:\n  misplaced_fields: ignore\n", encoding="utf-8")

            rc, _ = run(["validate", str(p)])
            self.assertEqual(rc, 1)
            rc, _ = run(["--config", str(cfg), "validate", str(p)])
            self.assertEqual(rc, 0)

    def test_bad_config_exit_code(self):
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "nbstruct.yaml"
            cfg.write_text("policy:\n  misplaced_fields: explode\n", encoding="utf-8")
            rc, _ = run(["--config", str(cfg), "validate", str(EXAMPLE)])
        self.assertEqual(rc, 2)

    def test_fmt_and_check(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "nb.ipynb"
            p.write_text(EXAMPLE.read_text(encoding="utf-8"), encoding="utf-8")
            rc, out = run(["fmt", "--check", str(p)])
            self.assertEqual(rc, 1)
            self.assertIn("Would reformat", out)
            rc, _ = run(["fmt", str(p)])
            self.assertEqual(rc, 0)
            rc, out = run(["fmt", "--check", str(p)])
            self.assertEqual(rc, 0)
            self.assertIn("Unchanged", out)

    def test_fmt_invalid_file(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "broken.ipynb"
            p.write_text(json.dumps(BROKEN), encoding="utf-8")
            rc, out = run(["fmt", str(p)])
        self.assertEqual(rc, 1)
        self.assertIn("3 violations", out)

    def test_invalid_utf8_is_a_violation(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "latin1.ipynb"
            p.write_bytes(b'{"nbformat": 4, "x": "\xff"}')
            rc, out = run(["validate", str(p)])
            self.assertEqual(rc, 1)
            lines = out.strip().splitlines()
            self.assertTrue(lines[0].startswith("StructuralError: <root>: invalid UTF-8"))
            self.assertTrue(lines[-1].startswith("FAIL: 1 violation(s)"))

            rc, out = run(["fmt", str(p)])
            self.assertEqual(rc, 1)
            self.assertIn("invalid UTF-8", out)

    def test_cells_listing(self):
        rc, out = run(["cells", str(EXAMPLE)])
        self.assertEqual(rc, 0)
        self.assertEqual(
            out.strip().splitlines(),
            ["0\tintro\tmarkdown", "1\tload\tcode", "2\tplot\tcode", "3\tnotes\traw"],
        )

    def test_missing_file(self):
        rc, _ = run(["validate", "/nonexistent/nb.ipynb"])
        self.assertEqual(rc, 2)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
