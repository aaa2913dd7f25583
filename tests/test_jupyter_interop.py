import sys
import unittest
from pathlib import Path

import nbformat

# Ensure 'src' is on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from nbstruct.build import new_code_cell, new_notebook
from nbstruct.errors import StructuralError
from nbstruct.jupyter import from_notebook_node, schema_violations, to_notebook_node
from nbstruct.parse import parse_file

EXAMPLE = Path(__file__).resolve().parents[1] / "examples" / "minimal.ipynb"


class TestJupyterInterop(unittest.TestCase):
    def test_notebook_node_roundtrip_preserves_ids_types_sources(self):
        nb1 = parse_file(str(EXAMPLE)).notebook
        node = to_notebook_node(nb1)
        self.assertEqual(node.cells[1].outputs[0].name, "stdout")
        self.assertEqual(node.metadata.kernelspec.name, "python3")

        nb2 = from_notebook_node(node)
        self.assertEqual([c.id for c in nb1.cells], [c.id for c in nb2.cells])
        self.assertEqual([c.cell_type for c in nb1.cells], [c.cell_type for c in nb2.cells])
        self.assertEqual([c.source for c in nb1.cells], [c.source for c in nb2.cells])

    def test_reads_via_nbformat(self):
        node = nbformat.read(str(EXAMPLE), as_version=4)
        nb = from_notebook_node(node)
        self.assertEqual(nb.cells[1].source, "x = [1, 2, 3]\nprint(sum(x))\nx")
        self.assertEqual(nb.cells[2].outputs[1].ename, "ValueError")

    def test_example_passes_schema(self):
        nb = parse_file(str(EXAMPLE)).notebook
        self.assertEqual(schema_violations(nb), [])

    def test_schema_catches_bad_cell_id(self):
        nb = new_notebook([new_code_cell("x = 1", id="not valid")])
        (v,) = schema_violations(nb)
        self.assertIsInstance(v, StructuralError)
        self.assertTrue(v.message.startswith("schema: "))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
