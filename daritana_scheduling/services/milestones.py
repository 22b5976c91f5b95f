import logging
from datetime import timedelta

from daritana_scheduling.domain.milestone import Milestone
from daritana_scheduling.errors import UnknownPhaseError
from daritana_scheduling.utils.dates import start_of_day

logger = logging.getLogger(__name__)

MILESTONE_SPACING_DAYS = 30

# Every third milestone (0, 3, 6, ...) triggers a progress payment
PAYMENT_INTERVAL = 3

PHASE_MILESTONES = {
    "pre-design": [
        "Client Brief Confirmed",
        "Site Analysis Complete",
        "Feasibility Study Approved",
        "Letter of Appointment Signed",
    ],
    "concept": [
        "Concept Design Presentation",
        "Client Concept Approval",
        "Local Authority Pre-Consultation",
    ],
    "schematic": [
        "Schematic Design Package",
        "Preliminary Cost Estimate",
        "Client Schematic Approval",
    ],
    "design_development": [
        "Design Development Drawings",
        "Consultant Coordination Review",
        "Planning Permission Submission",
        "Design Freeze",
    ],
    "documentation": [
        "Building Plan Submission",
        "Construction Drawings Complete",
        "Bills of Quantities Issued",
        "Building Plan Approval",
    ],
    "tender": [
        "Tender Documents Issued",
        "Tender Closing",
        "Tender Evaluation Report",
        "Letter of Award",
    ],
    "construction": [
        "Site Possession",
        "Substructure Complete",
        "Superstructure Complete",
        "Roof Works Complete",
        "M&E Installation Complete",
        "Certificate of Practical Completion",
    ],
    "post-completion": [
        "Certificate of Completion and Compliance",
        "Defects Liability Period Ends",
        "Final Account Settled",
    ],
}

PROJECT_PHASES = tuple(PHASE_MILESTONES)


def generate_milestones(project_id, phase, today=None, strict=False):
    """
    Build the standard milestone checklist for a project phase.

    Milestones fall every 30 days after `today`, each depends on the one
    before it, and every third one (starting with the first) is
    payment-linked and needs client approval.

    Args:
        project_id: Project the milestones belong to
        phase: One of PROJECT_PHASES
        today: Reference date (midnight today when omitted)
        strict: Raise UnknownPhaseError instead of returning [] for an
            unknown phase

    Returns:
        list: Milestone objects in checklist order
    """
    names = PHASE_MILESTONES.get(phase)
    if names is None:
        if strict:
            raise UnknownPhaseError(phase)
        logger.debug("No milestone list for phase %r", phase)
        return []

    base_date = start_of_day(today)
    milestones = []
    for index, name in enumerate(names):
        payment_linked = index % PAYMENT_INTERVAL == 0
        milestones.append(
            Milestone(
                id=f"{project_id}-{phase}-{index + 1}",
                name=name,
                description=f"{name} ({phase.replace('_', ' ')} phase)",
                date=base_date + timedelta(days=MILESTONE_SPACING_DAYS * (index + 1)),
                status="upcoming",
                payment_linked=payment_linked,
                client_approval_required=payment_linked,
                dependencies=[milestones[-1].id] if milestones else [],
            )
        )

    logger.info("Generated %d milestone(s) for %s/%s", len(milestones), project_id, phase)
    return milestones
