import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from leadflow.core.startup import bootstrap
from leadflow.database.db import get_db_session
from leadflow.models import Lead, LeadStatus, MarketingLink, Profile, Workflow
from leadflow.services.scoring_service import ScoringService
from leadflow.services.workflow_service import WorkflowService

DEMO_LEADS = [
    {"first_name": "Avery", "last_name": "Nguyen", "email": "avery@example.com", "phone": "555-0101", "source": "referral"},
    {"first_name": "Blake", "last_name": "Ortiz", "email": "blake@example.com", "source": "website"},
    {"first_name": "Casey", "last_name": "Park", "email": "casey@example.com", "phone": "555-0103", "source": "social"},
]


def seed(session) -> None:
    if session.query(Profile).filter(Profile.email == "preparer@example.com").first():
        print("Seed data already exists.")
        return

    preparer = Profile(first_name="Riley", last_name="Morgan", email="preparer@example.com")
    session.add(preparer)
    session.flush()

    session.add(MarketingLink(code="spring-flyer", link_type="flyer", title="Spring flyer", creator_id=preparer.id))
    leads = [Lead(status=LeadStatus.NEW, **values) for values in DEMO_LEADS]
    session.add_all(leads)
    session.commit()

    if not session.query(Workflow).filter(Workflow.name == "New lead welcome").first():
        WorkflowService(db=session).create(
            {
                "name": "New lead welcome",
                "trigger": "LEAD_CREATED",
                "priority": 10,
                "created_by": preparer.id,
                "actions": [
                    {"action_type": "ASSIGN_TO_PREPARER", "order": 0, "action_config": {"preparer_id": preparer.id}},
                    {"action_type": "CREATE_TASK", "order": 1, "action_config": {"title": "Call within 24 hours"}},
                    {
                        "action_type": "SEND_NOTIFICATION",
                        "order": 2,
                        "delay_minutes": 60,
                        "action_config": {"recipient_id": preparer.id, "message": "Follow up on new lead"},
                    },
                ],
            }
        )

    summary = ScoringService(db=session).recalculate_all()
    print(f"Seeded {len(leads)} leads; scored {summary['successful']} of {summary['total']}.")


if __name__ == "__main__":
    bootstrap()
    with get_db_session() as db:
        seed(db)
