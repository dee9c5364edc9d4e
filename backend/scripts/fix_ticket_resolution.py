#!/usr/bin/env python
"""Restore a ticket's resolution text from its latest resolution comment.

Usage:
    python backend/scripts/fix_ticket_resolution.py 1042
"""
from __future__ import annotations
import os, sys, argparse

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from vansupport import create_app, get_db  # type: ignore
from vansupport.services.ticket_lifecycle import find_ticket_by_number, restore_resolution_from_comment


def parse_args():
    p = argparse.ArgumentParser(description="Copy the latest resolution comment into tickets.resolution")
    p.add_argument('ticket_number', type=int)
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        ticket = find_ticket_by_number(session, args.ticket_number)
        if ticket is None:
            print(f"[ERROR] Ticket #{args.ticket_number} not found")
            sys.exit(1)
        print(f"Ticket #{ticket.ticket_number}: {ticket.subject} [{ticket.status}]")
        print(f"  current resolution: {ticket.resolution!r}")
        try:
            comment = restore_resolution_from_comment(session, ticket)
        except ValueError as e:
            print(f"[ERROR] {e}")
            sys.exit(2)
        if comment is None:
            print("[WARN] No resolution comment found; ticket left unchanged")
            sys.exit(3)
        print(f"  restored resolution: {ticket.resolution!r} (from {comment.author_name})")
        if args.dry_run:
            session.rollback()
            print("[DRY-RUN] (rolled back)")
        else:
            session.commit()
            print("[DONE]")


if __name__ == '__main__':
    main()
