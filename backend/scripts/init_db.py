"""Database initialization script - creates tables and an optional demo team."""
import asyncio
import sys
import uuid
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select
from teamcal.database import engine, Base, AsyncSessionLocal
from teamcal.models import AccessType, Team, TeamMembership


async def create_tables():
    """Create all database tables."""
    print("📦 Creating database tables...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    print("✅ Tables created successfully")


async def create_demo_team(name: str, staff_user_id: uuid.UUID):
    """Create a team with one head coach."""
    print(f"\n👥 Creating team: {name}")

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(Team).where(Team.name == name))
        if result.scalar_one_or_none():
            print("⚠️  Team already exists")
            return

        team = Team(name=name, color="#3b82f6")
        session.add(team)
        await session.flush()

        session.add(TeamMembership(
            team_id=team.id,
            user_id=staff_user_id,
            access_type=AccessType.STAFF.value,
            staff_role="head_coach",
        ))
        await session.commit()

        print("✅ Team created")
        print(f"   Team ID: {team.id}")
        print(f"   Coach user ID (send as X-User-Id): {staff_user_id}")


async def main():
    """Main initialization function."""
    print("🚀 Team Calendar - Database Initialization")
    print("=" * 60)

    team_name = input("\n🏷️  Demo team name (blank to skip): ").strip()

    response = input("\n⚠️  Create tables? (yes/no): ")
    if response.lower() not in ('yes', 'y'):
        print("❌ Initialization cancelled")
        return

    try:
        await create_tables()

        if team_name:
            await create_demo_team(team_name, uuid.uuid4())

        print("\n" + "=" * 60)
        print("✅ Database initialized successfully!")
        print("\nNext steps:")
        print("  1. Start the app: uvicorn teamcal.main:app --reload")

    except Exception as e:
        print(f"\n❌ Initialization failed: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
