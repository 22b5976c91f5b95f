import os
import tempfile
import unittest
from datetime import datetime

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from daritana_scheduling.domain.resource import ResourceConstraint  # noqa: E402
from daritana_scheduling.domain.task import Task  # noqa: E402
from daritana_scheduling.examples.simple_project import (  # noqa: E402
    PROJECT_ID,
    create_sample_tasks,
)
from daritana_scheduling.services.scheduler import ProjectScheduler  # noqa: E402
from daritana_scheduling.visualization.gantt import (  # noqa: E402
    create_gantt_chart,
    create_resource_gantt,
)
from daritana_scheduling.visualization.network import create_network_diagram  # noqa: E402


class TestVisualization(unittest.TestCase):
    def setUp(self):
        self.scheduler = ProjectScheduler()
        self.scheduler.set_tasks(PROJECT_ID, create_sample_tasks())
        self.scheduler.generate_milestones(
            PROJECT_ID, "construction", today=datetime(2025, 4, 1)
        )
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        plt.close("all")
        self.tmpdir.cleanup()

    def output(self, name):
        return os.path.join(self.tmpdir.name, name)

    def test_gantt_chart(self):
        filename = self.output("gantt.png")
        fig = create_gantt_chart(self.scheduler, PROJECT_ID, filename=filename, show=False)

        self.assertIsNotNone(fig)
        self.assertTrue(os.path.exists(filename))
        # Computed on demand and cached
        self.assertIsNotNone(self.scheduler.get_critical_path(PROJECT_ID))

    def test_gantt_view_modes(self):
        for view_mode in ("day", "month", "quarter", "year"):
            with self.subTest(view_mode=view_mode):
                self.scheduler.update_gantt_config(
                    view_mode=view_mode, show_dependencies=False, show_progress=False
                )
                fig = create_gantt_chart(self.scheduler, PROJECT_ID, show=False)
                self.assertIsNotNone(fig)
                plt.close(fig)

    def test_resource_gantt(self):
        filename = self.output("resources.png")
        fig = create_resource_gantt(
            self.scheduler,
            PROJECT_ID,
            constraints=[ResourceConstraint("crew-a")],
            filename=filename,
            show=False,
        )
        self.assertIsNotNone(fig)
        self.assertTrue(os.path.exists(filename))

    def test_network_diagram_layouts(self):
        for layout in ("layered", "spring", "circular", "shell"):
            with self.subTest(layout=layout):
                filename = self.output(f"network-{layout}.png")
                fig = create_network_diagram(
                    self.scheduler, PROJECT_ID, filename=filename, show=False, layout=layout
                )
                self.assertIsNotNone(fig)
                self.assertTrue(os.path.exists(filename))
                plt.close(fig)

    def test_charts_after_tasks_change(self):
        self.scheduler.calculate_critical_path(PROJECT_ID)
        self.scheduler.add_task(
            PROJECT_ID,
            Task("T10", "Landscaping", datetime(2025, 7, 8), datetime(2025, 7, 15),
                 dependencies=["T6"]),
        )

        self.assertIsNotNone(create_network_diagram(self.scheduler, PROJECT_ID, show=False))
        self.assertIsNotNone(create_gantt_chart(self.scheduler, PROJECT_ID, show=False))
        self.assertIn("T10", self.scheduler.get_critical_path(PROJECT_ID).schedule)

    def test_empty_project(self):
        self.assertIsNone(create_gantt_chart(self.scheduler, "empty", show=False))
        self.assertIsNone(create_network_diagram(self.scheduler, "empty", show=False))

    def test_resource_gantt_without_resources(self):
        self.scheduler.set_tasks(
            "bare", [Task("A", "Survey", datetime(2025, 4, 1), datetime(2025, 4, 2))]
        )
        self.assertIsNone(create_resource_gantt(self.scheduler, "bare", show=False))


if __name__ == "__main__":
    unittest.main()
