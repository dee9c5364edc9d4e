#!/usr/bin/env python
"""Idempotent seed script for roles, ticket categories and the first admin.

Usage:
    python backend/scripts/seed_authz.py               # seed normally
    python backend/scripts/seed_authz.py --show-roles  # print role -> permissions after seeding
    python backend/scripts/seed_authz.py --dry-run     # run logic then rollback (no DB changes)

The admin account is read from SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD.
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, inspect

# Allow running from repo root or from backend/
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from vansupport import create_app, get_db  # type: ignore
from vansupport.models import Base
from vansupport.models.authz import Role
from vansupport.services.seeding import ensure_roles, ensure_categories, ensure_admin_user


def print_role_summary(session):
    rows = [(r.name, r.permissions or []) for r in session.execute(select(Role).order_by(Role.name)).scalars().all()]
    if not rows:
        print("[INFO] No roles present.")
        return
    name_w = max(len(r[0]) for r in rows)
    print(f"{'Role'.ljust(name_w)} | Count | Permissions")
    print('-' * (name_w + 40))
    for name, perms in rows:
        print(f"{name.ljust(name_w)} | {str(len(perms)).rjust(5)} | {', '.join(sorted(perms))}")


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed roles, ticket categories and the initial admin user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_authz.py\n  dry run: seed_authz.py --dry-run\n  show roles: seed_authz.py --show-roles\n""")
    )
    p.add_argument('--show-roles', action='store_true', help='Print role permissions after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        engine = session.get_bind()
        if not inspect(engine).has_table('roles'):
            # bootstrap only; real deployments run `alembic upgrade head`
            print('[INFO] Schema missing; creating tables from models')
            Base.metadata.create_all(engine)

        created_r = ensure_roles(session)
        created_c = ensure_categories(session)
        admin = ensure_admin_user(
            session,
            os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com'),
            os.getenv('SEED_ADMIN_PASSWORD', 'ChangeMe123!'),
        )
        if admin:
            print(f"[INFO] Created initial admin user {admin.email} with temporary password.")
        if args.show_roles:
            print_role_summary(session)
        if args.dry_run:
            session.rollback()
            print(f"[DRY-RUN] (rolled back) Roles would create: {created_r}, Categories would create: {created_c}")
        else:
            session.commit()
            print(f"[DONE] Roles created: {created_r}, Categories created: {created_c}")


if __name__ == '__main__':
    main()
