"""Utility script to create a notification for a user in the database."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import create_notification
from app.infrastructure.database import SessionLocal, initialize_database


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments for notification creation."""

    parser = argparse.ArgumentParser(
        description="Create a notification for a user of the notification service.",
    )
    parser.add_argument("user_id", help="Identity that will own the notification")
    parser.add_argument("message", help="Text shown to the user")
    parser.add_argument(
        "--type",
        default="info",
        help="Free-form notification type (default: info)",
    )
    parser.add_argument(
        "--event-id",
        default=None,
        help="Identifier of the related event (optional)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Create a notification using the provided command line arguments."""

    args = parse_args(argv)

    initialize_database()

    session = SessionLocal()
    try:
        notification = create_notification(
            session,
            user_id=args.user_id,
            type=args.type,
            message=args.message,
            event_id=args.event_id,
        )
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not store the notification: {exc}") from exc
    else:
        print(
            "Notification created:\n"
            f"  ID: {notification.id}\n"
            f"  User: {notification.user_id}\n"
            f"  Type: {notification.type}\n"
            f"  Message: {notification.message}"
        )
    finally:
        session.close()


if __name__ == "__main__":
    main()
