"""Price link canonicalization job."""

from __future__ import annotations

import sys

import yaml
from dotenv import load_dotenv

from reconciler.jobs.runner import EXIT_CONFIG, base_parser, execute
from reconciler.links import load_retailer_rules
from reconciler.links.canonicalizer import LinkCanonicalizer
from reconciler.links.rules import RetailerRules
from reconciler.store import create_store_from_env
from reconciler.store.base import CatalogStore
from reconciler.utils.batch import DEFAULT_CONCURRENCY
from reconciler.utils.logs import setup_logging
from reconciler.utils.report import PassSummary


async def run_canonicalize(
    retailer: str | None = None,
    *,
    store: CatalogStore | None = None,
    rule_sets: dict[str, RetailerRules] | None = None,
    dry_run: bool = False,
    concurrency: int | None = None,
) -> PassSummary:
    canonicalizer = LinkCanonicalizer(
        store or create_store_from_env(),
        rule_sets,
        concurrency=concurrency or DEFAULT_CONCURRENCY,
        dry_run=dry_run,
    )
    return await canonicalizer.run(retailer)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    setup_logging()
    parser = base_parser("Rewrite retailer price links to canonical URLs.")
    parser.add_argument("--retailer", default=None, help="only process links of this retailer")
    parser.add_argument("--rules", default=None, help="path to a retailer rules YAML file")
    args = parser.parse_args(argv)
    try:
        rule_sets = load_retailer_rules(args.rules)
    except (OSError, yaml.YAMLError, KeyError, ValueError) as exc:
        print(f"Could not load retailer rules: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    if args.retailer and args.retailer.lower() not in rule_sets:
        print(f"No canonicalization rules for retailer {args.retailer!r}", file=sys.stderr)
        return EXIT_CONFIG
    return execute(
        run_canonicalize(
            args.retailer,
            rule_sets=rule_sets,
            dry_run=args.dry_run,
            concurrency=args.concurrency,
        )
    )


if __name__ == "__main__":
    sys.exit(main())
