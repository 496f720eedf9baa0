"""
Seed database with the default founder checklist

Usage:
    python -m app.utils.seed_data
"""
import asyncio
import sys
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.db.session import AsyncSessionLocal
from app.models import ChecklistTemplate


# Default onboarding tasks, grouped by category
DEFAULT_TEMPLATES = {
    "Company Profile": [
        "Complete your company profile",
        "Add your company's founding year and industry",
        "Link your LinkedIn profile",
    ],
    "Pitch Materials": [
        "Upload your pitch deck",
        "Write a one-paragraph company description",
        "Prepare a two-minute elevator pitch",
    ],
    "Fundraising": [
        "Define your current funding stage",
        "Set your fundraising target",
        "Shortlist investors that match your stage",
    ],
    "Account Security": [
        "Verify your email address",
        "Enable two-factor authentication",
    ],
}


async def seed_templates(db: AsyncSession) -> int:
    """Create missing checklist templates. Returns the number created."""
    print("\n🌱 Seeding checklist templates...")

    result = await db.execute(select(ChecklistTemplate.category, ChecklistTemplate.text))
    existing = set(result.all())

    created = 0
    for category, texts in DEFAULT_TEMPLATES.items():
        for text in texts:
            if (category, text) in existing:
                print(f"  ⏭️  '{text}' already exists")
                continue
            db.add(ChecklistTemplate(text=text, category=category))
            created += 1
            print(f"  ✅ Created template: {text}")

    await db.commit()
    return created


async def main():
    """Main seed function"""
    print("\n" + "=" * 60)
    print("🌱 SEEDING DATABASE: VentureFlow")
    print("=" * 60)

    async with AsyncSessionLocal() as db:
        try:
            created = await seed_templates(db)

            print("\n" + "=" * 60)
            print("✅ DATABASE SEEDING COMPLETED!")
            print("=" * 60)
            print(f"  • {created} checklist templates created")
            print("\n")

        except Exception as e:
            print(f"\n❌ ERROR: {e}")
            await db.rollback()
            sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
