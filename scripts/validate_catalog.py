#!/usr/bin/env python3
"""
Catalog validation utility.

Loads a deity catalog YAML file, checks it against the configured tiers
and reports which entities fall back to English in each language.

Usage:
    python scripts/validate_catalog.py path/to/catalog.yaml --config quiz.yaml

Exit status is 0 when the catalog can serve every tier, 1 otherwise.
"""

import argparse
import sys
from pathlib import Path

import yaml

from divine_quiz.catalog import DEFAULT_CATALOG_PATH, EntityCatalog
from divine_quiz.config import load_config
from divine_quiz.errors import QuizError
from divine_quiz.models import Language


def report_coverage(catalog: EntityCatalog) -> None:
    """Print, per language, the entities without a localized name."""
    print(f"\n🌐 Language coverage ({len(catalog)} entities)")
    for language in Language:
        missing = [entity.id for entity in catalog.all() if language not in entity.names]
        if missing:
            print(f"  ⚠ {language.value}: {len(missing)} fall back to English ({', '.join(missing)})")
        else:
            print(f"  ✓ {language.value}: complete")


def parse_args() -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Validate a deity catalog against the quiz tiers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check the bundled catalog against the stock tiers
  python scripts/validate_catalog.py

  # Check a custom catalog against a custom tier table
  python scripts/validate_catalog.py my_deities.yaml --config quiz.yaml
        """,
    )

    parser.add_argument(
        "catalog",
        nargs="?",
        default=DEFAULT_CATALOG_PATH,
        type=Path,
        help="Catalog YAML file (default: bundled catalog)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Quiz configuration YAML file"
    )

    return parser.parse_args()


def main() -> None:
    """Main entry point for the validation script."""
    args = parse_args()

    try:
        config = load_config(args.config)
        print(f"\n📂 Loading catalog: {args.catalog}")
        catalog = EntityCatalog.from_yaml(args.catalog)
        config.validate_catalog(catalog)
    except (OSError, yaml.YAMLError, QuizError) as e:
        print(f"  ✗ {e}")
        sys.exit(1)

    for difficulty, tier in config.tiers.items():
        print(f"  ✓ {difficulty.value} ({tier.label}): {tier.options} options from {len(catalog)} entities")

    report_coverage(catalog)


if __name__ == "__main__":
    main()
