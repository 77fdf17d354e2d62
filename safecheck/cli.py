"""CLI commands for SafeCheck."""

import argparse
import asyncio
import sys

from sqlalchemy.orm import Session

from safecheck.database import SessionLocal, engine
from safecheck.models import Base
from safecheck.services.ai_service import ClaudeService, ProviderError
from safecheck.services.analysis_service import AnalysisService, InputValidationError
from safecheck.services.history_service import history_service
from safecheck.services.image_service import ImageService, is_remote_url
from safecheck.services.profile_service import profile_service
from safecheck.services.report_normalizer import ParseError
from safecheck.services.schemas import AnalysisReport
from safecheck.services.store import AppStore


def _open_store() -> tuple[Session, AppStore]:
    Base.metadata.create_all(bind=engine)
    db: Session = SessionLocal()
    return db, AppStore(db)


def add_profile(
    name: str, age: str, allergies: list[str], conditions: str | None = None
) -> None:
    """Create a health profile."""
    db, store = _open_store()
    try:
        profile = profile_service.create_profile(
            store, name=name, age=age, allergies=allergies, conditions=conditions
        )
        print(f"Profile created: {profile.name} ({profile.id})")
    finally:
        db.close()


def select(profile_id: str | None = None, family_id: str | None = None) -> None:
    """Set or clear the active profile/family."""
    db, store = _open_store()
    try:
        try:
            profile_service.select(store, profile_id=profile_id, family_id=family_id)
        except LookupError as e:
            print(f"Error: {e}")
            sys.exit(1)
        if profile_id or family_id:
            print(f"Selected: {profile_id or family_id}")
        else:
            print("Selection cleared.")
    finally:
        db.close()


def format_report(report: AnalysisReport) -> str:
    """Plain-text rendering of a report for the terminal."""
    rating = f"{report.safety_rating}/5" if report.is_rated else "unrated"
    lines = [f"{report.product_name or 'Unknown product'}  [{rating}]"]
    if report.overall_safety:
        lines.append(report.overall_safety)

    sections = [
        ("Allergy warnings", report.allergy_warnings),
        ("Family warnings", report.family_warnings),
        ("Personalized warnings", report.personalized_warnings),
        ("Harmful ingredients", report.harmful_ingredients),
        ("Compound interactions", report.compound_interactions),
        ("Recommendations", report.recommendations),
    ]
    for title, items in sections:
        if items:
            lines.append(f"{title}:")
            lines.extend(f"  - {item}" for item in items)

    for group, text in report.age_specific_warnings.model_dump().items():
        if text:
            lines.append(f"{group.capitalize()}: {text}")
    return "\n".join(lines)


def analyze(image: str) -> None:
    """Analyze a local image file or remote image URL."""
    db, store = _open_store()
    try:
        if is_remote_url(image):
            provider_image, image_reference = image, image
        else:
            try:
                prepared = ImageService().prepare_file(image)
            except (OSError, ValueError) as e:
                print(f"Error: {e}")
                sys.exit(1)
            provider_image, image_reference = prepared.data_uri, prepared.path

        service = AnalysisService(ClaudeService())
        try:
            entry = asyncio.run(service.analyze(store, provider_image, image_reference))
        except InputValidationError as e:
            print(f"Error: {e}")
            sys.exit(1)
        except ParseError:
            print("Error: Analysis failed - could not parse result")
            sys.exit(1)
        except ProviderError as e:
            print(f"Error: {e}")
            sys.exit(1)

        print(format_report(entry.report))
    finally:
        db.close()


def show_history() -> None:
    """Print past analyses, newest first."""
    db, store = _open_store()
    try:
        entries = history_service.list_history(store)
        if not entries:
            print("No analyses yet.")
            return
        for entry in entries:
            rating = (
                f"{entry.report.safety_rating}/5" if entry.report.is_rated else "unrated"
            )
            print(
                f"{entry.timestamp:%Y-%m-%d %H:%M}  {rating:>7}  "
                f"{entry.report.product_name or 'Unknown product'}"
            )
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="SafeCheck CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    add_profile_parser = subparsers.add_parser(
        "add-profile", help="Create a health profile"
    )
    add_profile_parser.add_argument("--name", required=True, help="Profile name")
    add_profile_parser.add_argument("--age", default="", help="Age in years")
    add_profile_parser.add_argument(
        "--allergy", action="append", default=[], help="Allergy (repeatable)"
    )
    add_profile_parser.add_argument("--conditions", help="Health conditions")

    select_parser = subparsers.add_parser(
        "select", help="Choose the active profile or family"
    )
    group = select_parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--profile", help="Profile id")
    group.add_argument("--family", help="Family id")
    group.add_argument("--clear", action="store_true", help="Clear the selection")

    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyze a product label image"
    )
    analyze_parser.add_argument("image", help="Image file path or http(s) URL")

    subparsers.add_parser("history", help="List past analyses")

    args = parser.parse_args()

    if args.command == "add-profile":
        add_profile(args.name, args.age, args.allergy, args.conditions)
    elif args.command == "select":
        select(profile_id=args.profile, family_id=args.family)
    elif args.command == "analyze":
        analyze(args.image)
    elif args.command == "history":
        show_history()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
