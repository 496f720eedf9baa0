"""
Script to create the first super admin, or promote an existing admin
Usage: python scripts/create_super_admin.py <email> <name> <password>
       python scripts/create_super_admin.py --list
"""
import sys
import asyncio
from sqlalchemy import select
from app.db.session import AsyncSessionLocal
from app.models import AdminUser, AdminRole, AdminStatus
from app.services.auth_service import auth_service


async def create_super_admin(email: str, name: str, password: str):
    """Create a super admin, or promote the admin with this email"""
    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(AdminUser).where(AdminUser.email == email)
        )
        admin = result.scalar_one_or_none()

        if admin:
            print(f"\n📧 Admin: {admin.email}")
            print(f"🔑 Current Role: {admin.role.value}")

            if admin.role == AdminRole.SUPER_ADMIN and admin.status == AdminStatus.ACTIVE:
                print(f"\n✅ Admin is already an active super admin")
                return True

            admin.role = AdminRole.SUPER_ADMIN
            admin.status = AdminStatus.ACTIVE
            await db.commit()

            print(f"\n🎉 SUCCESS! Admin promoted to super admin")
            return True

        if len(password) < 8:
            print("❌ Password must be at least 8 characters")
            return False

        admin = AdminUser(
            email=email,
            name=name,
            password_hash=auth_service.hash_password(password),
            role=AdminRole.SUPER_ADMIN,
            status=AdminStatus.ACTIVE,
            added_by="bootstrap",
        )
        db.add(admin)
        await db.commit()

        print(f"\n🎉 SUCCESS! Super admin {email} created")
        return True


async def list_admins():
    """List all admin accounts"""
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(AdminUser).order_by(AdminUser.id))
        admins = result.scalars().all()

        if not admins:
            print("❌ No admins found in database")
            return

        print(f"\n📋 Found {len(admins)} admin(s):\n")
        for admin in admins:
            print(f"  📧 {admin.email}")
            print(f"     Role: {admin.role.value}")
            print(f"     Status: {admin.status.value}")
            print(f"     ID: {admin.id}")
            print()


def main():
    if len(sys.argv) == 2 and sys.argv[1] == "--list":
        asyncio.run(list_admins())
        return

    if len(sys.argv) < 4:
        print("Usage: python scripts/create_super_admin.py <email> <name> <password>")
        print("\nOr use: python scripts/create_super_admin.py --list")
        print("\nExample: python scripts/create_super_admin.py admin@ventureflow.io 'Jane Doe' 's3cure-pass'")
        sys.exit(1)

    email, name, password = sys.argv[1], sys.argv[2], sys.argv[3]
    success = asyncio.run(create_super_admin(email, name, password))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
