import tempfile
import unittest
from pathlib import Path

import pandas as pd

from run import main

OFFER_CSV = """codigo,semestre,turma,dia,horario,creditos
MC102,1s2024,A,Segunda,08:00 - 10:00,4
MC102,1s2024,A,Quarta,08:00 - 10:00,4
MC102,1s2024,C,Terça,10:00 - 12:00,4
MA111,2s2023,A,Sexta,14:00 - 16:00,6
"""


class RunTests(unittest.TestCase):
    def test_end_to_end(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "oferta.csv").write_text(OFFER_CSV, encoding="utf-8")
            (root / "disciplinas.txt").write_text("IC:MC102\nIMECC:MA111\n", encoding="utf-8")
            out_dir = root / "outputs"
            code = main(
                [
                    "--config", str(root / "config.yaml"),
                    "--data_dir", str(root / "cache"),
                    "--subjects_file", str(root / "disciplinas.txt"),
                    "--term", "1s2024",
                    "--max_cr", "10",
                    "--import_csv", str(root / "oferta.csv"),
                    "--output_dir", str(out_dir),
                ]
            )
            self.assertEqual(code, 0)
            self.assertTrue((out_dir / "plano_1.txt").exists())
            self.assertTrue((out_dir / "plano_2.txt").exists())
            self.assertFalse((out_dir / "plano_3.txt").exists())
            text = (out_dir / "plano_1.txt").read_text(encoding="utf-8")
            self.assertIn("1s2024", text)
            self.assertIn("2s2024", text)

            ranking = pd.read_csv(out_dir / "ranking.csv")
            self.assertEqual(sorted(ranking["rank"].unique().tolist()), [1, 2])
            self.assertEqual(ranking["semestre"].tolist()[:2], ["1s2024", "2s2024"])

    def test_infeasible_exit_code(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "oferta.csv").write_text(OFFER_CSV, encoding="utf-8")
            (root / "disciplinas.txt").write_text("IC:MC102\nIMECC:MA111\n", encoding="utf-8")
            code = main(
                [
                    "--config", str(root / "config.yaml"),
                    "--data_dir", str(root / "cache"),
                    "--subjects_file", str(root / "disciplinas.txt"),
                    "--term", "1s2024",
                    "--max_cr", "5",
                    "--import_csv", str(root / "oferta.csv"),
                    "--output_dir", str(root / "outputs"),
                ]
            )
            self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
