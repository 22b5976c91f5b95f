import unittest
from datetime import datetime, timedelta

from daritana_scheduling.domain.resource import (
    AvailabilityPeriod,
    ResourceConstraint,
    ResourceError,
)
from daritana_scheduling.domain.task import Task
from daritana_scheduling.errors import ValidationError
from daritana_scheduling.services.resource_leveling import (
    apply_leveling,
    check_resource_conflicts,
    perform_resource_leveling,
)


def day(n):
    return datetime(2025, 4, n)


def make_task(task_id, start, end, **kwargs):
    return Task(task_id, f"Task {task_id}", day(start), day(end), **kwargs)


class TestResourceConstraint(unittest.TestCase):
    def test_validation(self):
        with self.assertRaises(ResourceError):
            ResourceConstraint("")
        with self.assertRaises(ResourceError):
            ResourceConstraint("crew-a", max_allocation=0)
        with self.assertRaises(ResourceError):
            AvailabilityPeriod(day(5), day(1), 50)
        with self.assertRaises(ResourceError):
            AvailabilityPeriod(day(1), day(5), 150)

    def test_capacity_at(self):
        constraint = ResourceConstraint(
            "crew-a",
            max_allocation=200,
            availability=[
                AvailabilityPeriod(day(2), day(4), 50),
                AvailabilityPeriod(day(3), day(5), 25),
            ],
        )
        self.assertEqual(constraint.capacity_at(day(1)), 200)
        self.assertEqual(constraint.capacity_at(day(2)), 100)
        self.assertEqual(constraint.capacity_at(day(3)), 50)
        # Periods are half-open
        self.assertEqual(constraint.capacity_at(day(5)), 200)


class TestCheckResourceConflicts(unittest.TestCase):
    def test_overlap_reported(self):
        tasks = [
            make_task("A", 1, 6, resources=["crew-a"]),
            make_task("B", 3, 8, resources=["crew-a"]),
        ]
        conflicts = check_resource_conflicts(tasks)

        self.assertEqual(len(conflicts), 1)
        conflict = conflicts[0]
        self.assertEqual(conflict.resource_id, "crew-a")
        self.assertEqual(conflict.task_ids, ["A", "B"])
        self.assertEqual((conflict.start_date, conflict.end_date), (day(3), day(6)))
        self.assertEqual(conflict.total_allocation, 200)
        self.assertEqual(conflict.overallocation, 100)

    def test_partial_allocations_fit(self):
        tasks = [
            make_task("A", 1, 6, resources={"crew-a": 50}),
            make_task("B", 3, 8, resources={"crew-a": 50}),
        ]
        self.assertEqual(check_resource_conflicts(tasks), [])

    def test_back_to_back_tasks_do_not_conflict(self):
        tasks = [
            make_task("A", 1, 3, resources=["crew-a"]),
            make_task("B", 3, 5, resources=["crew-a"]),
        ]
        self.assertEqual(check_resource_conflicts(tasks), [])

    def test_segments_split_when_task_set_changes(self):
        tasks = [
            make_task("A", 1, 10, resources={"crew-a": 60}),
            make_task("B", 3, 5, resources={"crew-a": 60}),
            make_task("C", 5, 7, resources={"crew-a": 60}),
        ]
        conflicts = check_resource_conflicts(tasks)

        self.assertEqual([c.task_ids for c in conflicts], [["A", "B"], ["A", "C"]])
        self.assertEqual(conflicts[0].end_date, conflicts[1].start_date)

    def test_constraint_capacity_and_availability(self):
        tasks = [
            make_task("A", 1, 6, resources=["crew-a"]),
            make_task("B", 3, 8, resources=["crew-a"]),
        ]
        self.assertEqual(
            check_resource_conflicts(tasks, [ResourceConstraint("crew-a", max_allocation=200)]),
            [],
        )

        reduced = ResourceConstraint(
            "crew-a", availability=[AvailabilityPeriod(day(1), day(2), 50)]
        )
        conflicts = check_resource_conflicts(tasks, [reduced])
        self.assertEqual(
            [(c.start_date, c.end_date, c.capacity) for c in conflicts],
            [(day(1), day(2), 50), (day(3), day(6), 100)],
        )


class TestPerformResourceLeveling(unittest.TestCase):
    def setUp(self):
        self.tasks = [
            make_task("A", 1, 6, resources=["crew-a"]),
            make_task("B", 3, 8, resources=["crew-a"]),
        ]
        self.constraint = ResourceConstraint("crew-a", ["A", "B"], max_allocation=100)

    def test_overlapping_task_is_delayed(self):
        results = perform_resource_leveling(self.tasks, [self.constraint])
        by_task = {r.task_id: r for r in results}

        self.assertFalse(by_task["A"].is_shifted)
        self.assertEqual(by_task["B"].leveled_start, day(6))
        self.assertEqual(by_task["B"].leveled_end, day(11))
        self.assertEqual(by_task["B"].shift_days, 3)
        self.assertIn("A", by_task["B"].reason)
        self.assertEqual(by_task["B"].resource_id, "crew-a")
        # Recomputed with B sequenced after A
        self.assertEqual(by_task["B"].total_float, 0)
        self.assertTrue(by_task["B"].is_critical)

    def test_input_tasks_untouched(self):
        perform_resource_leveling(self.tasks, [self.constraint])
        self.assertEqual(self.tasks[1].start_date, day(3))

    def test_leveled_tasks_have_no_conflicts(self):
        results = perform_resource_leveling(self.tasks, [self.constraint])
        leveled = apply_leveling(self.tasks, results)
        self.assertEqual(check_resource_conflicts(leveled, [self.constraint]), [])

    def test_partial_allocations_not_moved(self):
        tasks = [
            make_task("A", 1, 6, resources={"crew-a": 50}),
            make_task("B", 3, 8, resources={"crew-a": 50}),
        ]
        results = perform_resource_leveling(tasks, [ResourceConstraint("crew-a")])

        self.assertEqual(len(results), 2)
        self.assertFalse(any(r.is_shifted for r in results))
        self.assertTrue(all(r.reason == "No over-allocation on crew-a" for r in results))

    def test_priority_breaks_ties(self):
        tasks = [
            make_task("A", 1, 6, resources=["crew-a"], priority="low"),
            make_task("B", 1, 6, resources=["crew-a"], priority="urgent"),
        ]
        results = perform_resource_leveling(tasks, [ResourceConstraint("crew-a")])
        by_task = {r.task_id: r for r in results}

        self.assertFalse(by_task["B"].is_shifted)
        self.assertEqual(by_task["A"].leveled_start, day(6))
        self.assertEqual(by_task["A"].shift_days, 5)

    def test_least_float_placed_first(self):
        # B feeds a longer chain, so A (with float) gives way
        tasks = [
            make_task("A", 1, 6, resources=["crew-a"]),
            make_task("B", 3, 8, resources=["crew-a"]),
            make_task("C", 8, 12, dependencies=["B"]),
        ]
        results = perform_resource_leveling(tasks, [ResourceConstraint("crew-a")])
        by_task = {r.task_id: r for r in results}

        self.assertFalse(by_task["B"].is_shifted)
        self.assertEqual(by_task["A"].leveled_start, day(8))

    def test_dependents_follow_shifted_task(self):
        tasks = [
            make_task("A", 1, 6, resources=["crew-a"]),
            make_task("B", 3, 8, resources=["crew-a"]),
            make_task("C", 6, 8, dependencies=["A"]),
            make_task("D", 8, 10, dependencies=["B"]),
        ]
        results = perform_resource_leveling(tasks, [ResourceConstraint("crew-a")])
        pushed = results[-1]

        self.assertEqual(pushed.task_id, "D")
        self.assertIsNone(pushed.resource_id)
        self.assertEqual(pushed.leveled_start, day(11))
        self.assertEqual(pushed.leveled_end, day(13))
        self.assertIn("B", pushed.reason)
        self.assertEqual(pushed.total_float, 0)

        leveled = {t.id: t for t in apply_leveling(tasks, results)}
        self.assertEqual(leveled["B"].start_date, day(6))
        self.assertEqual(leveled["D"].start_date, day(11))
        self.assertIs(leveled["A"], tasks[0])

    def test_dependent_on_resource_placed_after_predecessor(self):
        tasks = [
            make_task("B", 1, 6, resources={"R": 60}),
            make_task("F", 6, 16, dependencies=["B"]),
            make_task("A", 1, 6, resources={"R": 60}),
            make_task("C", 6, 11, dependencies=["A"], resources={"R": 40}),
            make_task("E", 11, 16, resources={"R": 100}),
        ]
        results = perform_resource_leveling(tasks, [ResourceConstraint("R")])
        final = {r.task_id: r for r in results}

        self.assertEqual(final["A"].leveled_start, day(6))
        self.assertEqual(final["C"].leveled_start, day(11))
        self.assertEqual(final["C"].reason, "Follows leveled predecessor(s) A")
        self.assertEqual(final["E"].leveled_start, day(16))
        self.assertIn("C", final["E"].reason)
        self.assertEqual(check_resource_conflicts(apply_leveling(tasks, results)), [])

    def test_chain_through_unconstrained_task_stays_within_capacity(self):
        tasks = [
            make_task("P", 1, 6, resources=["R"]),
            make_task("W", 6, 16, dependencies=["P"]),
            make_task("X", 1, 6, resources=["R"]),
            make_task("Y", 6, 8, dependencies=["X"]),
            make_task("Z", 8, 10, dependencies=["Y"], resources=["R"]),
            make_task("Q", 13, 15, resources=["R"]),
        ]
        results = perform_resource_leveling(tasks, [ResourceConstraint("R")])
        leveled = {t.id: t for t in apply_leveling(tasks, results)}

        self.assertEqual(leveled["X"].start_date, day(6))
        self.assertEqual(leveled["Y"].start_date, day(11))
        self.assertEqual(leveled["Z"].start_date, day(13))
        self.assertEqual(leveled["Q"].start_date, day(15))
        self.assertEqual(check_resource_conflicts(list(leveled.values())), [])

    def test_waits_for_availability(self):
        tasks = [make_task("A", 1, 4, resources=["crew-a"])]
        constraint = ResourceConstraint(
            "crew-a", availability=[AvailabilityPeriod(day(1), day(3), 0)]
        )
        result = perform_resource_leveling(tasks, [constraint])[0]

        self.assertEqual(result.leveled_start, day(3))
        self.assertIn("available", result.reason)

    def test_allocation_above_capacity_left_in_place(self):
        tasks = [make_task("A", 1, 4, resources={"crew-a": 150})]
        with self.assertLogs("daritana_scheduling.services.resource_leveling", "WARNING"):
            results = perform_resource_leveling(tasks, [ResourceConstraint("crew-a")])

        self.assertFalse(results[0].is_shifted)
        self.assertIn("cannot be leveled", results[0].reason)

    def test_unknown_constraint_tasks(self):
        constraint = ResourceConstraint("crew-a", ["A", "GHOST"])
        with self.assertRaises(ValidationError):
            perform_resource_leveling(self.tasks, [constraint])

        results = perform_resource_leveling(self.tasks, [constraint], strict=False)
        self.assertEqual([r.task_id for r in results], ["A"])

    def test_no_constraints(self):
        self.assertEqual(perform_resource_leveling(self.tasks, []), [])

    def test_to_dict(self):
        result = perform_resource_leveling(self.tasks, [self.constraint])[1]
        data = result.to_dict()
        self.assertEqual(data["task_id"], "B")
        self.assertEqual(data["shift_days"], 3)
        self.assertEqual(data["float"], 0)


if __name__ == "__main__":
    unittest.main()
