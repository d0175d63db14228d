"""
Seed script creating a demo peer-feedback survey for development.
Run with: python -m scripts.seed_survey [--single-use] [--anonymous N]

Prints every minted plaintext token once, plus an admin JWT for the admin
endpoints. Nothing printed here can be recovered later.
"""

import argparse
import asyncio

from core.config import settings
from core.security import create_admin_token
from db.session import close_db, get_session_factory, init_db
from models import Candidate, FeedbackOption, FeedbackType, Survey, SurveyStatus, TokenPolicy
from services.token_service import TokenService

SEED_CANDIDATES = [
    {"name": "John Doe", "employee_id": "E-1001", "department": "Engineering"},
    {"name": "Jane Smith", "employee_id": "E-1002", "department": "Marketing"},
    {"name": "Mike Johnson", "employee_id": "E-1003", "department": "Sales"},
    {"name": "Sarah Lee", "employee_id": "E-1004", "department": "HR"},
    {"name": "Tom Wilson", "employee_id": "E-1005", "department": "Finance"},
]

SEED_OPTIONS = {
    FeedbackType.STRENGTH: [
        "Communicates clearly",
        "Takes ownership",
        "Helps teammates grow",
        "Delivers on time",
    ],
    FeedbackType.WEAKNESS: [
        "Could delegate more",
        "Could share progress earlier",
        "Could document decisions",
    ],
}


async def seed_survey(single_use: bool, anonymous: int) -> None:
    await init_db()
    policy = TokenPolicy.SINGLE_USE if single_use else TokenPolicy.MULTI_CANDIDATE

    async with get_session_factory()() as session:
        survey = Survey(
            title="Demo peer review",
            description="Seeded for local development",
            status=SurveyStatus.ACTIVE.value,
            token_policy=policy.value,
        )
        session.add(survey)
        await session.flush()

        for feedback_type, texts in SEED_OPTIONS.items():
            for order, text in enumerate(texts):
                session.add(
                    FeedbackOption(
                        survey_id=survey.id,
                        type=feedback_type.value,
                        option_text=text,
                        display_order=order,
                    )
                )

        candidates = []
        for data in SEED_CANDIDATES:
            candidate = Candidate(survey_id=survey.id, **data)
            session.add(candidate)
            candidates.append(candidate)

        await session.commit()
        print(f"Created survey {survey.id} ({policy.value})")

        service = TokenService(session)
        print("\n📋 Voting tokens")
        for candidate in candidates:
            issued = await service.issue_candidate_voter_token(survey.id, candidate.id)
            print(f"  {candidate.name:<14} {issued.token}")

        print("\n🔑 Results access tokens")
        for candidate in candidates:
            access = await service.issue_candidate_access_token(survey.id, candidate.id)
            print(f"  {candidate.name:<14} {access.token}")

        if anonymous:
            bulk = await service.mint_bulk_tokens(survey.id, anonymous)
            print(f"\n🎫 Anonymous tokens ({anonymous})")
            for issued in bulk.tokens:
                print(f"  {issued.token}")

    print(f"\n🛡️  Admin token ({settings.ADMIN_TOKEN_EXPIRE_MINUTES} min)")
    print(f"  {create_admin_token('seed-admin', role='admin')}")

    await close_db()
    print("\n✅ Seed complete")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a demo survey")
    parser.add_argument("--single-use", action="store_true", help="use the single_use token policy")
    parser.add_argument("--anonymous", type=int, default=0, help="anonymous tokens to mint (single_use only)")
    args = parser.parse_args()

    asyncio.run(seed_survey(args.single_use, args.anonymous))
