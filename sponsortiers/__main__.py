"""Entry point for sponsors.json generation"""
import argparse
import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import List, Optional

from sponsortiers.categorization import classify_sponsors
from sponsortiers.config import Settings, settings
from sponsortiers.export import backup_document, load_document, load_export, write_document
from sponsortiers.reports import format_changes, format_overview
from sponsortiers.services.exchange import fetch_exchange_rate
from sponsortiers.services.github import GitHubAPI, ProfileEnricher
from sponsortiers.services.storage import StorageService
from sponsortiers.summary import log_summary, summarize

SPONSORS_JSON = "sponsors.json"
BACKUP_JSON = "sponsors.backup.json"
BANNER_PNG = "sponsors.png"

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Classify GitHub sponsors and generate sponsors.json')
    parser.add_argument('--export', help='Path to the GitHub sponsorship export (overrides EXPORT_FILE)')
    parser.add_argument('--output-dir', help='Directory for generated files (overrides OUTPUT_DIR)')
    parser.add_argument('--offline', '--no-rate', action='store_true',
                        help='Skip profile and exchange rate lookups')
    parser.add_argument('-t', '--table', action='store_true', help='Show the sponsors overview table')
    parser.add_argument('-c', '--check', action='store_true',
                        help='Only compare the current sponsors.json with its backup')
    parser.add_argument('-y', '--yes', action='store_true', help='Upload generated files to R2')
    return parser.parse_args(argv)

def build_enricher(config: Settings, offline: bool) -> ProfileEnricher:
    """Profile enricher for this run; without a token or in offline mode it never calls out"""
    if offline:
        logger.info("Offline mode: using export names and default avatars")
        return ProfileEnricher()
    if not config.GITHUB_TOKEN:
        logger.info("GITHUB_TOKEN not set: using export names and default avatars")
        return ProfileEnricher()
    api = GitHubAPI(config.GITHUB_TOKEN, config.GITHUB_API_URL, config.ENRICHMENT_TIMEOUT_SECONDS,
                    max_attempts=config.ENRICHMENT_MAX_ATTEMPTS)
    return ProfileEnricher(api, delay=config.ENRICHMENT_DELAY_SECONDS)

def show_overview(document, config: Settings, offline: bool) -> None:
    if offline:
        rate = config.FALLBACK_EXCHANGE_RATE
        logger.info(f"Using fallback exchange rate: 1 USD = {rate} {config.EXCHANGE_CURRENCY}")
    else:
        rate = fetch_exchange_rate(
            config.EXCHANGE_RATE_URL,
            config.EXCHANGE_CURRENCY,
            config.FALLBACK_EXCHANGE_RATE,
            config.ENRICHMENT_TIMEOUT_SECONDS
        ).rate
    for line in format_overview(document, rate, config.EXCHANGE_CURRENCY):
        logger.info(line)

def check_changes(output_path: str, backup_path: str, config: Settings, args: argparse.Namespace) -> None:
    """Compare the current document with its backup without regenerating"""
    old_document = load_document(backup_path)
    if old_document is None:
        raise FileNotFoundError(f"No backup found at {backup_path}. Generate sponsors.json first.")
    new_document = load_document(output_path)
    if new_document is None:
        raise FileNotFoundError(f"No current document found at {output_path}.")

    logger.info("Checking for sponsor changes...")
    for line in format_changes(old_document, new_document):
        logger.info(line)
    if args.table:
        show_overview(new_document, config, args.offline or config.OFFLINE)

def generate(config: Settings, args: argparse.Namespace, now: datetime) -> None:
    """Load the export, classify, write sponsors.json and optionally report and upload"""
    offline = args.offline or config.OFFLINE
    export_path = args.export or config.EXPORT_FILE
    output_dir = args.output_dir or config.OUTPUT_DIR
    output_path = os.path.join(output_dir, SPONSORS_JSON)
    backup_path = os.path.join(output_dir, BACKUP_JSON)

    if args.check:
        check_changes(output_path, backup_path, config, args)
        return

    logger.info("Processing GitHub sponsorship data...")
    export = load_export(export_path)

    enricher = build_enricher(config, offline)
    batch = classify_sponsors(export.sponsors, now, profile_lookup=enricher)
    document = summarize(batch.sponsors, now, config.ALWAYS_SHOW_LIFETIME)

    has_backup = backup_document(output_path, backup_path)
    write_document(document, output_path)
    log_summary(document, batch.sponsors)

    warnings = export.skipped_records + batch.warning_count + enricher.failures
    if warnings:
        logger.warning(f"Completed with {warnings} warning(s): {export.skipped_records} unreadable "
                       f"records, {batch.warning_count} sponsors with invalid data, "
                       f"{enricher.failures} failed profile lookups")

    old_document = load_document(backup_path) if has_backup else None
    if old_document:
        for line in format_changes(old_document, document):
            logger.info(line)
    else:
        logger.info(f"First run! Found {document.summary.total_sponsors} sponsors.")

    if args.table:
        show_overview(document, config, offline)

    if not args.yes:
        logger.info("Skipping upload (no --yes). Run with --yes to upload.")
        return

    r2 = config.r2_settings
    if r2 is None:
        raise ValueError("R2 credentials not provided")
    storage = StorageService(r2)
    uploaded = storage.upload_files([output_path, os.path.join(output_dir, BANNER_PNG)])
    logger.info(f"Uploaded {', '.join(uploaded) or 'nothing'} to R2 bucket {r2.bucket}")

def run(argv: Optional[List[str]] = None, config: Settings = settings,
        now: Optional[datetime] = None) -> None:
    """Generate sponsors.json from the configured export."""
    try:
        args = parse_args(argv)

        # Log config (excluding sensitive data)
        safe_config = config.model_dump(exclude={'GITHUB_TOKEN', 'R2_ACCESS_KEY_ID', 'R2_SECRET_ACCESS_KEY'})
        logger.info("Using configuration:")
        logger.info(json.dumps(safe_config, indent=2))

        generate(config, args, now or datetime.now(timezone.utc))

    except Exception as e:
        logger.error(f"Error during sponsor processing: {e}")
        traceback.print_exc()
        sys.exit(1)

if __name__ == "__main__":
    run()
