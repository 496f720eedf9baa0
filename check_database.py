"""
Database inspection script - Check all data in the database
"""
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv
load_dotenv()


def _print_rows(title, rows, fmt):
    print(f"\n📋 {title}:")
    print("-" * 40)
    if rows:
        for row in rows:
            print("  " + fmt(row))
    else:
        print(f"  (No {title.lower()} found)")


async def check_database():
    """Check all data in the database"""
    from sqlalchemy import text
    from app.db.session import AsyncSessionLocal

    print("=" * 60)
    print("   DATABASE INSPECTION REPORT")
    print("=" * 60)

    async with AsyncSessionLocal() as db:
        result = await db.execute(text(
            "SELECT id, email, user_type, is_active, is_verified, two_factor_enabled FROM users ORDER BY id"
        ))
        _print_rows("USERS", result.fetchall(), lambda u: (
            f"ID: {u[0]} | Email: {u[1]} | Type: {u[2]} | Active: {u[3]} | Verified: {u[4]} | 2FA: {u[5]}"
        ))

        result = await db.execute(text("SELECT id, email, role, status FROM admin_users ORDER BY id"))
        _print_rows("ADMIN USERS", result.fetchall(), lambda a: (
            f"ID: {a[0]} | Email: {a[1]} | Role: {a[2]} | Status: {a[3]}"
        ))

        result = await db.execute(text("SELECT id, category, text FROM checklist_templates ORDER BY category, id"))
        _print_rows("CHECKLIST TEMPLATES", result.fetchall(), lambda t: f"ID: {t[0]} | {t[1]} | {t[2]}")

        result = await db.execute(text(
            "SELECT user_id, COUNT(*), SUM(CASE WHEN done THEN 1 ELSE 0 END) FROM user_progress GROUP BY user_id ORDER BY user_id"
        ))
        _print_rows("USER PROGRESS", result.fetchall(), lambda p: f"User: {p[0]} | Tracked: {p[1]} | Done: {p[2]}")

        result = await db.execute(text(
            "SELECT id, admin_id, action_type, target_email, state, created_at FROM protected_actions ORDER BY id"
        ))
        _print_rows("PROTECTED ACTIONS", result.fetchall(), lambda p: (
            f"ID: {p[0]} | Admin: {p[1]} | {p[2]} {p[3]} | State: {p[4]} | Created: {p[5]}"
        ))

        result = await db.execute(text(
            "SELECT id, admin_id, action, entity_ref, created_at FROM audit_logs ORDER BY id DESC LIMIT 20"
        ))
        _print_rows("AUDIT LOGS", result.fetchall(), lambda a: (
            f"ID: {a[0]} | Admin: {a[1]} | {a[2]} {a[3]} | At: {a[4]}"
        ))

    print("\n" + "=" * 60)


if __name__ == "__main__":
    asyncio.run(check_database())
