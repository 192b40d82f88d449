import unittest

from planner.config import PlannerConfig
from planner.conflicts import conflicts
from planner.exceptions import MissingCreditError
from planner.model import Section, Slot, Timesheet
from planner.search import BranchingSearch, SearchStatus, plan_enrollment

MON, TUE, WED, THU, FRI = 2, 3, 4, 5, 6


def sec(*slots):
    return Section(tuple(Slot(*s) for s in slots))


def assert_plan_invariants(test, plan, cap):
    for term in plan.terms:
        test.assertLessEqual(term.credits, cap)
        items = sorted(term.sections.items())
        for i, (code_a, sec_a) in enumerate(items):
            for code_b, sec_b in items[i + 1:]:
                for slot in sec_a:
                    test.assertFalse(conflicts(slot, list(sec_b)), f"{code_a} x {code_b}")


class SeedAndBranchTests(unittest.TestCase):
    def test_most_constrained_subject_seeds_first(self):
        # A: lunes o martes; B: solo lunes. B (1 turma) entra primero y A
        # queda con la única turma libre: un solo plan completo.
        ts_a = Timesheet(
            {
                "A": [sec((MON, 800, 1000)), sec((TUE, 800, 1000))],
                "B": [sec((MON, 800, 1000))],
            }
        )
        cfg = PlannerConfig(max_credits=5)
        result = plan_enrollment(ts_a, Timesheet(), {"A": 3, "B": 2}, cfg)
        self.assertEqual(result.status, SearchStatus.COMPLETE)
        self.assertEqual(len(result.plans), 1)
        plan = result.plans[0]
        self.assertEqual(len(plan.terms), 1)
        self.assertEqual(plan.terms[0].sections["B"], sec((MON, 800, 1000)))
        self.assertEqual(plan.terms[0].sections["A"], sec((TUE, 800, 1000)))
        self.assertEqual(plan.terms[0].credits, 5)

    def test_branches_and_incomplete_branch_continues(self):
        # A y B empatan en 2 turmas: A es semilla. Con A el lunes, B choca
        # siempre y tiene que esperar al semestre 2 (la oferta B está vacía).
        ts_a = Timesheet(
            {
                "A": [sec((MON, 800, 1000)), sec((TUE, 800, 1000))],
                "B": [sec((MON, 800, 900)), sec((MON, 900, 1000))],
            }
        )
        search = BranchingSearch(ts_a, Timesheet(), {"A": 3, "B": 2}, PlannerConfig(max_credits=5))
        result = search.run()

        self.assertEqual(result.status, SearchStatus.COMPLETE)
        self.assertEqual(result.history[0]["population"], 3)
        self.assertEqual(result.history[0]["complete"], 2)
        self.assertEqual(result.terms_explored, 3)
        self.assertEqual(result.population_size, 4)
        self.assertEqual(len(result.plans), 4)

        # todos los planes comparten la misma cantidad de semestres
        self.assertEqual([len(p.terms) for p in result.plans], [3, 3, 3, 3])
        for plan in result.plans:
            self.assertEqual(plan.covered, {"A", "B"})
            assert_plan_invariants(self, plan, 5)
            if "B" in plan.terms[0].sections:
                self.assertEqual(plan.terms[1].sections, {})
                self.assertEqual(plan.terms[2].sections, {})
            else:
                self.assertEqual(plan.terms[0].sections, {"A": sec((MON, 800, 1000))})
                self.assertEqual(plan.terms[1].sections, {})
                self.assertIn("B", plan.terms[2].sections)

    def test_early_plans_carry_empty_terms_into_ranking(self):
        # los planes que terminan en el semestre 0 arrastran dos semestres
        # vacíos (puntaje 0) y quedan detrás de los que terminan en el 2
        ts_a = Timesheet(
            {
                "A": [sec((MON, 800, 1000)), sec((TUE, 800, 1000))],
                "B": [sec((MON, 800, 900)), sec((MON, 900, 1000))],
            }
        )
        result = plan_enrollment(ts_a, Timesheet(), {"A": 3, "B": 2}, PlannerConfig(max_credits=5))
        self.assertEqual(len(result.plans), 4)
        for plan in result.plans[:2]:
            self.assertNotIn("B", plan.terms[0].sections)
            self.assertIn("B", plan.terms[2].sections)
        for plan in result.plans[2:]:
            self.assertIn("B", plan.terms[0].sections)
            self.assertEqual([t.score for t in plan.terms[1:]], [0.0, 0.0])
        self.assertGreater(result.plans[1].score, result.plans[2].score)

    def test_one_plan_per_section_at_branch_point(self):
        ts_a = Timesheet({"S": [sec((MON, 800, 1000)), sec((TUE, 800, 1000)), sec((WED, 800, 1000))]})
        search = BranchingSearch(ts_a, Timesheet(), {"S": 4}, PlannerConfig())
        search.seed()
        self.assertEqual(len(search.population), 3)
        chosen = [p.current.sections["S"] for p in search.population]
        self.assertEqual(chosen, ts_a.sections("S"))

    def test_clones_do_not_share_state(self):
        ts_a = Timesheet(
            {
                "A": [sec((MON, 800, 1000))],
                "B": [sec((TUE, 800, 1000)), sec((WED, 800, 1000))],
            }
        )
        search = BranchingSearch(ts_a, Timesheet(), {"A": 2, "B": 2}, PlannerConfig())
        search.seed()
        search.run_term(0)
        self.assertEqual(len(search.population), 2)
        p1, p2 = search.population
        self.assertIsNot(p1.current, p2.current)
        self.assertIsNot(p1.covered, p2.covered)
        self.assertNotEqual(p1.current.sections["B"], p2.current.sections["B"])
        self.assertIsNot(p1.terms[0].sections, p2.terms[0].sections)

    def test_single_subject_finishes_in_one_term(self):
        ts_a = Timesheet({"MC102": [sec((MON, 800, 1000))]})
        result = plan_enrollment(ts_a, Timesheet(), {"MC102": 4}, PlannerConfig(max_credits=6))
        self.assertEqual(result.status, SearchStatus.COMPLETE)
        self.assertEqual(result.terms_explored, 1)
        self.assertEqual(len(result.plans), 1)
        plan = result.plans[0]
        self.assertEqual(len(plan.terms), 1)
        self.assertEqual(len(plan.covered), result.goal)


class SearchInvariantTests(unittest.TestCase):
    def setUp(self):
        self.ts_a = Timesheet(
            {
                "MC102": [sec((MON, 800, 1000), (WED, 800, 1000)), sec((TUE, 1000, 1200), (THU, 1000, 1200))],
                "MA111": [
                    sec((MON, 800, 1000), (WED, 1000, 1200)),
                    sec((TUE, 1400, 1600), (THU, 1400, 1600)),
                    sec((FRI, 800, 1200)),
                ],
                "F 128": [sec((MON, 1000, 1200)), sec((TUE, 800, 1000))],
                "QG101": [sec((MON, 1400, 1600))],
            }
        )
        self.ts_b = Timesheet(
            {
                "MA141": [sec((WED, 800, 1000)), sec((THU, 800, 1000))],
                "F 128": [sec((WED, 1400, 1600))],
            }
        )
        self.credits = {"MC102": 4, "MA111": 6, "F 128": 4, "QG101": 4, "MA141": 4}

    def test_all_plans_respect_cap_and_conflicts(self):
        cfg = PlannerConfig(max_credits=12, top_n=50)
        result = plan_enrollment(self.ts_a, self.ts_b, self.credits, cfg)
        self.assertEqual(result.status, SearchStatus.COMPLETE)
        self.assertEqual(result.goal, 5)
        self.assertTrue(result.plans)
        for plan in result.plans:
            self.assertEqual(plan.covered, set(self.credits))
            assert_plan_invariants(self, plan, 12)
            covered = [c for t in plan.terms for c in t.sections]
            self.assertEqual(len(covered), len(set(covered)))

    def test_ranked_best_first(self):
        result = plan_enrollment(self.ts_a, self.ts_b, self.credits, PlannerConfig(max_credits=12, top_n=3))
        self.assertLessEqual(len(result.plans), 3)
        scores = [p.score for p in result.plans]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_search_is_deterministic(self):
        cfg = PlannerConfig(max_credits=12, top_n=50)
        r1 = plan_enrollment(self.ts_a, self.ts_b, self.credits, cfg)
        r2 = plan_enrollment(self.ts_a, self.ts_b, self.credits, cfg)
        self.assertEqual(
            [[t.sections for t in p.terms] for p in r1.plans],
            [[t.sections for t in p.terms] for p in r2.plans],
        )


class TerminationTests(unittest.TestCase):
    def test_missing_credit_is_fatal(self):
        ts_a = Timesheet({"MC102": [sec((MON, 800, 1000))], "MA111": [sec((TUE, 800, 1000))]})
        with self.assertRaises(MissingCreditError) as ctx:
            BranchingSearch(ts_a, Timesheet(), {"MC102": 4}, PlannerConfig())
        self.assertEqual(ctx.exception.details["codes"], ["MA111"])

    def test_unschedulable_subject_is_infeasible(self):
        ts_a = Timesheet({"X": [sec((MON, 800, 1000))]})
        result = plan_enrollment(ts_a, Timesheet(), {"X": 10}, PlannerConfig(max_credits=5))
        self.assertEqual(result.status, SearchStatus.INFEASIBLE)
        self.assertFalse(result.feasible)
        self.assertEqual(result.plans, [])
        self.assertEqual(result.blocked_subjects, ["X"])
        self.assertEqual(result.terms_explored, 2)

    def test_term_budget_without_stall_detection(self):
        ts_a = Timesheet({"X": [sec((MON, 800, 1000))]})
        cfg = PlannerConfig(max_credits=5, max_terms=4, detect_stalls=False)
        result = plan_enrollment(ts_a, Timesheet(), {"X": 10}, cfg)
        self.assertEqual(result.status, SearchStatus.EXHAUSTED)
        self.assertEqual(result.terms_explored, 4)
        self.assertEqual(len(result.history), 4)

    def test_population_budget(self):
        ts_a = Timesheet(
            {
                "A": [sec((MON, 800, 1000)), sec((TUE, 800, 1000)), sec((WED, 800, 1000))],
                "B": [sec((MON, 1400, 1600)), sec((TUE, 1400, 1600)), sec((WED, 1400, 1600))],
            }
        )
        cfg = PlannerConfig(max_population=5)
        result = plan_enrollment(ts_a, Timesheet(), {"A": 4, "B": 4}, cfg)
        self.assertEqual(result.status, SearchStatus.EXHAUSTED)
        self.assertEqual(result.population_size, 9)

    def test_stall_after_partial_progress(self):
        # Y entra en el semestre 0; X excede el tope en cualquier oferta
        ts_a = Timesheet({"Y": [sec((MON, 800, 1000))]})
        ts_b = Timesheet({"X": [sec((TUE, 800, 1000))]})
        result = plan_enrollment(ts_a, ts_b, {"X": 10, "Y": 4}, PlannerConfig(max_credits=5))
        self.assertEqual(result.status, SearchStatus.INFEASIBLE)
        self.assertEqual(result.terms_explored, 3)
        self.assertEqual(result.stalled_plans, 1)
        self.assertEqual(result.blocked_subjects, ["X"])
        self.assertEqual(result.plans, [])

    def test_unoffered_subjects_are_reported(self):
        ts_a = Timesheet({"MC102": [sec((MON, 800, 1000))], "MA111": []})
        ts_b = Timesheet({"MA111": []})
        result = plan_enrollment(ts_a, ts_b, {"MC102": 4, "MA111": 6}, PlannerConfig())
        self.assertEqual(result.status, SearchStatus.COMPLETE)
        self.assertEqual(result.goal, 1)
        self.assertEqual(result.unoffered, ["MA111"])


if __name__ == "__main__":
    unittest.main()
