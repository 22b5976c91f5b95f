import unittest
from datetime import datetime

from daritana_scheduling.domain.baseline import Baseline, BaselineError, BaselineTask
from daritana_scheduling.domain.resource import ResourceConstraint
from daritana_scheduling.domain.task import Task
from daritana_scheduling.errors import ValidationError
from daritana_scheduling.examples.simple_project import PROJECT_ID, create_sample_tasks
from daritana_scheduling.services.scheduler import ProjectScheduler


class TestBaseline(unittest.TestCase):
    def setUp(self):
        self.scheduler = ProjectScheduler()
        self.scheduler.set_tasks(PROJECT_ID, create_sample_tasks())
        self.taken = datetime(2025, 3, 28, 9, 0)

    def test_create_baseline(self):
        baseline = self.scheduler.create_baseline(
            PROJECT_ID, "Contract Programme", "Issued with the Letter of Award", now=self.taken
        )

        self.assertEqual(baseline.id, f"{PROJECT_ID}-baseline-1")
        self.assertEqual(baseline.name, "Contract Programme")
        self.assertEqual(baseline.baseline_date, self.taken)
        self.assertEqual(baseline.start_date, datetime(2025, 4, 1))
        self.assertEqual(baseline.end_date, datetime(2025, 7, 10))
        self.assertEqual(len(baseline.tasks), 9)

        snapshot = baseline.get_task("T4")
        self.assertEqual(snapshot.title, "M&E Sleeve Prefabrication")
        self.assertEqual(snapshot.start_date, datetime(2025, 4, 2))
        self.assertEqual(snapshot.status, "pending")

    def test_baselines_are_numbered_per_project(self):
        first = self.scheduler.create_baseline(PROJECT_ID, "Tender")
        second = self.scheduler.create_baseline(PROJECT_ID, "Revised")

        self.assertEqual(second.id, f"{PROJECT_ID}-baseline-2")
        self.assertIs(self.scheduler.get_baseline(PROJECT_ID), second)
        self.assertIs(self.scheduler.get_baseline(PROJECT_ID, first.id), first)
        self.assertIsNone(self.scheduler.get_baseline(PROJECT_ID, "nope"))
        self.assertIsNone(self.scheduler.get_baseline("other"))

    def test_snapshot_unaffected_by_later_changes(self):
        baseline = self.scheduler.create_baseline(PROJECT_ID, "Tender")
        results = self.scheduler.perform_resource_leveling(
            PROJECT_ID, [ResourceConstraint("crew-a")]
        )
        self.scheduler.apply_leveling(PROJECT_ID, results)

        self.assertEqual(baseline.get_task("T4").start_date, datetime(2025, 4, 2))

    def test_variance_after_leveling(self):
        self.scheduler.create_baseline(PROJECT_ID, "Tender")
        results = self.scheduler.perform_resource_leveling(
            PROJECT_ID, [ResourceConstraint("crew-a")]
        )
        self.scheduler.apply_leveling(PROJECT_ID, results)

        variances = {v.task_id: v for v in self.scheduler.compare_to_baseline(PROJECT_ID)}
        self.assertEqual(variances["T4"].start_variance, 6)
        self.assertEqual(variances["T4"].finish_variance, 6)
        self.assertTrue(variances["T4"].is_slipped)
        self.assertEqual(variances["T1"].finish_variance, 0)
        self.assertFalse(variances["T1"].is_slipped)

    def test_added_and_removed_tasks(self):
        self.scheduler.create_baseline(PROJECT_ID, "Tender")
        tasks = [t for t in self.scheduler.get_tasks(PROJECT_ID) if t.id != "T9"]
        tasks.append(Task("T10", "Landscaping", datetime(2025, 7, 8), datetime(2025, 7, 15),
                          dependencies=["T6"]))
        self.scheduler.set_tasks(PROJECT_ID, tasks)

        variances = {v.task_id: v for v in self.scheduler.compare_to_baseline(PROJECT_ID)}
        self.assertTrue(variances["T10"].is_added)
        self.assertIsNone(variances["T10"].start_variance)
        self.assertTrue(variances["T9"].is_removed)
        self.assertEqual(list(variances)[-1], "T9")

    def test_errors(self):
        with self.assertRaises(BaselineError):
            self.scheduler.compare_to_baseline(PROJECT_ID)
        with self.assertRaises(ValidationError):
            self.scheduler.create_baseline("empty", "Tender")
        with self.assertRaises(BaselineError):
            self.scheduler.create_baseline(PROJECT_ID, "   ")

    def test_to_dict(self):
        baseline = Baseline(
            "b1", "p1", "Tender", self.taken, datetime(2025, 4, 1), datetime(2025, 5, 1),
            [BaselineTask("A", "Survey", datetime(2025, 4, 1), datetime(2025, 4, 3), "pending")],
        )
        data = baseline.to_dict()
        self.assertEqual(data["tasks"][0]["task_id"], "A")
        self.assertIsNone(data["description"])
        self.assertEqual(data["end_date"], datetime(2025, 5, 1))


if __name__ == "__main__":
    unittest.main()
