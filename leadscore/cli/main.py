"""
Main CLI interface for the LeadScore system.
Provides command-line access to lead prioritization, reporting and engagement tracking.
"""

import argparse
import asyncio
import sys
import logging
import json
from pathlib import Path
from typing import List, Optional

from ..core.config_manager import get_config, init_config
from ..core.exceptions import ContactNotFoundError, DataValidationError, PrioritizationError
from ..data.models import ScoredLead
from ..services.lead_scoring_service import LeadScoringService

logger = logging.getLogger(__name__)


def build_service(args) -> LeadScoringService:
    """Load configuration and seed a service from the mock data directory."""
    config = init_config(args.config_dir, args.env)
    if not args.verbose:
        logging.getLogger().setLevel(config.get('logging.level', 'INFO'))
    try:
        return LeadScoringService.from_config(config, data_path=args.data)
    except DataValidationError as e:
        logger.error(f"Cannot load CRM data: {str(e)}")
        sys.exit(1)


def output_path(configured: Optional[str], key: str) -> str:
    """An explicit --output, else the directory configured under output.<key>."""
    return configured or get_config().get_output_config().get(key, 'outputs')


def print_leads(leads: List[ScoredLead], title: str):
    """Print a ranked lead table."""
    print(f"\n=== {title} ({len(leads)} leads) ===")
    print(f"{'#':<4} {'ID':<5} {'Name':<24} {'Company':<26} {'Score':>6} {'Temp':<6} {'Priority':>8}")
    print("-" * 84)
    for rank, lead in enumerate(leads, start=1):
        contact = lead.contact
        print(f"{rank:<4} {contact.id:<5} {contact.name[:24]:<24} {(contact.company or '')[:26]:<26} "
              f"{lead.score:>6} {lead.temperature.value:<6} {lead.priority:>8}")


def setup_prioritize_parser(subparsers):
    """Set up the prioritize command parser."""
    prioritize_parser = subparsers.add_parser('prioritize', help='Rank every contact by live lead score')
    prioritize_parser.set_defaults(func=prioritize_leads)


def setup_top_parser(subparsers):
    """Set up the top command parser."""
    top_parser = subparsers.add_parser('top', help='Show the highest scoring leads')
    top_parser.add_argument('--limit', type=int, default=10, help='Number of leads to show')
    top_parser.set_defaults(func=top_leads)


def setup_distribution_parser(subparsers):
    """Set up the distribution command parser."""
    distribution_parser = subparsers.add_parser('distribution', help='Lead counts per temperature')
    distribution_parser.set_defaults(func=score_distribution)


def setup_score_parser(subparsers):
    """Set up the score command parser."""
    score_parser = subparsers.add_parser('score', help='Explain the live score of one contact')
    score_parser.add_argument('--contact', type=int, required=True, help='Contact ID')
    score_parser.set_defaults(func=score_contact)


def setup_engagement_parser(subparsers):
    """Set up the engagement command parser."""
    engagement_parser = subparsers.add_parser('engagement', help='Engagement summary for one contact')
    engagement_parser.add_argument('--contact', type=int, required=True, help='Contact ID')
    engagement_parser.set_defaults(func=engagement_summary)


def setup_track_parser(subparsers):
    """Set up the track command parser."""
    track_parser = subparsers.add_parser('track', help='Record an engagement event')
    track_parser.add_argument('--contact', type=int, required=True, help='Contact ID')
    track_parser.add_argument('--type', required=True, dest='engagement_type',
                              help='Engagement type (email_open, website_visit, form_submission, ...)')
    track_parser.add_argument('--details', default='{}', help='JSON object with event details')
    track_parser.set_defaults(func=track_engagement)


def setup_refresh_parser(subparsers):
    """Set up the refresh command parser."""
    refresh_parser = subparsers.add_parser('refresh', help='Recompute and persist every contact score')
    refresh_parser.set_defaults(func=refresh_scores)


def setup_report_parser(subparsers):
    """Set up the report command parser."""
    report_parser = subparsers.add_parser('report', help='Temperature report with score statistics')
    report_parser.add_argument('--output', help='Path to save the report as JSON')
    report_parser.add_argument('--save', action='store_true',
                               help='Save the report under the configured reports directory')
    report_parser.set_defaults(func=priority_report)


def setup_export_parser(subparsers):
    """Set up the export command parser."""
    export_parser = subparsers.add_parser('export', help='Export one CSV of leads per temperature')
    export_parser.add_argument('--output', help='Export directory (defaults to output.lists_dir)')
    export_parser.set_defaults(func=export_lists)


def prioritize_leads(args):
    """Rank every contact by live lead score."""
    try:
        service = build_service(args)
        leads = asyncio.run(service.get_prioritized_leads())
        print_leads(leads, "PRIORITIZED LEADS")
    except PrioritizationError as e:
        logger.error(f"Unable to prioritize leads right now: {str(e)}")
        sys.exit(1)


def top_leads(args):
    """Show the highest scoring leads."""
    try:
        service = build_service(args)
        leads = asyncio.run(service.get_top_performing_leads(args.limit))
        print_leads(leads, f"TOP {args.limit} LEADS")
    except (PrioritizationError, ValueError) as e:
        logger.error(f"Unable to prioritize leads right now: {str(e)}")
        sys.exit(1)


def score_distribution(args):
    """Print lead counts per temperature."""
    try:
        service = build_service(args)
        distribution = asyncio.run(service.get_lead_score_distribution())

        print(f"\n=== LEAD SCORE DISTRIBUTION ===")
        print(f"Hot leads:     {distribution.hot}")
        print(f"Warm leads:    {distribution.warm}")
        print(f"Cold leads:    {distribution.cold}")
        print(f"Average score: {distribution.average_score:.1f}")
    except PrioritizationError as e:
        logger.error(f"Unable to prioritize leads right now: {str(e)}")
        sys.exit(1)


def score_contact(args):
    """Explain the live score of one contact."""
    service = build_service(args)

    async def _score():
        contact = await service.contacts.get(args.contact)
        breakdown = await service.explain_lead_score(contact.id)
        return contact, breakdown

    try:
        contact, breakdown = asyncio.run(_score())
    except ContactNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)

    temperature = service.get_lead_temperature(breakdown.total)

    print(f"\n=== LEAD SCORE: {contact.name} ===")
    print(f"Score: {breakdown.total} ({temperature.value.upper()}, "
          f"priority {service.calculate_priority(breakdown.total, temperature)})")
    print(f"Cached score: {contact.lead_score} ({contact.temperature.value})")
    print(f"\n=== SCORE TERMS ===")
    print(f"Email opens:       {breakdown.email_open_score:>8.1f}")
    print(f"Website visits:    {breakdown.website_visit_score:>8.1f}")
    print(f"Form submissions:  {breakdown.form_submission_score:>8.1f}")
    print(f"Deal size:         {breakdown.deal_size_score:>8.1f}")
    print(f"Recency bonus:     {breakdown.recency_bonus:>8.1f}")
    print(f"Frequency bonus:   {breakdown.frequency_bonus:>8.1f}")


def engagement_summary(args):
    """Print the engagement summary for one contact."""
    service = build_service(args)
    summary = asyncio.run(service.get_engagement_summary(args.contact))

    print(f"\n=== ENGAGEMENT SUMMARY: contact {args.contact} ===")
    print(f"Total engagements: {summary.total_engagements}")
    print(f"Email opens:       {summary.email_opens}")
    print(f"Website visits:    {summary.website_visits}")
    print(f"Form submissions:  {summary.form_submissions}")
    last = summary.last_engagement.isoformat() if summary.last_engagement else 'never'
    print(f"Last engagement:   {last}")


def track_engagement(args):
    """Record an engagement event."""
    try:
        details = json.loads(args.details)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid --details JSON: {str(e)}")
        sys.exit(1)

    service = build_service(args)
    event = asyncio.run(service.track_engagement(args.contact, args.engagement_type, details))
    print(json.dumps(event.to_dict(), indent=2))


def refresh_scores(args):
    """Recompute and persist every contact score."""
    try:
        service = build_service(args)
        leads = asyncio.run(service.refresh_contact_scores())
        print_leads(leads, "REFRESHED LEAD SCORES")
    except PrioritizationError as e:
        logger.error(f"Unable to prioritize leads right now: {str(e)}")
        sys.exit(1)


def priority_report(args):
    """Print and optionally save the temperature report."""
    try:
        service = build_service(args)
        report = asyncio.run(service.generate_priority_report())
    except PrioritizationError as e:
        logger.error(f"Unable to prioritize leads right now: {str(e)}")
        sys.exit(1)

    summary = report['summary']
    print(f"\n=== PRIORITY REPORT ===")
    print(f"Total leads: {report['total_leads']}")
    for temperature, count in report['temperature_distribution']['counts'].items():
        percentage = report['temperature_distribution']['percentages'][temperature]
        print(f"{temperature.capitalize():5} leads: {count:4d} ({percentage:5.1f}%)")
    print(f"Average score: {summary['average_score']:.1f}")

    if args.output or args.save:
        report_file = Path(output_path(args.output, 'reports_dir'))
        if not args.output:
            report_file = report_file / "priority_report.json"
        report_file.parent.mkdir(parents=True, exist_ok=True)
        with open(report_file, 'w') as f:
            json.dump(report, f, indent=2, default=str)
        logger.info(f"Priority report saved to: {report_file}")


def export_lists(args):
    """Export one CSV of leads per temperature."""
    try:
        service = build_service(args)
        file_paths = asyncio.run(service.export_prioritized_lists(output_path(args.output, 'lists_dir')))
    except PrioritizationError as e:
        logger.error(f"Unable to prioritize leads right now: {str(e)}")
        sys.exit(1)

    print(f"\n=== EXPORT SUCCESSFUL ===")
    for temperature, path in file_paths.items():
        print(f"{temperature.capitalize():5}: {path}")


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='LeadScore - CRM Lead Scoring & Prioritization',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rank every contact
  leadscore prioritize

  # Show the five hottest leads
  leadscore top --limit 5

  # Explain one contact's score
  leadscore score --contact 1

  # Record a website visit
  leadscore track --contact 3 --type website_visit --details '{"page": "/pricing"}'

  # Export hot/warm/cold lists
  leadscore export --output outputs/lists

  # Save the report under output.reports_dir
  leadscore report --save
        """
    )

    parser.add_argument('--version', action='version', version='LeadScore v1.0.0')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')
    parser.add_argument('--config-dir', default='config', help='Directory with YAML configuration')
    parser.add_argument('--env', help='Configuration environment (dev, test, prod)')
    parser.add_argument('--data', help='Directory with mock contacts, deals and engagement data')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Set up command parsers
    setup_prioritize_parser(subparsers)
    setup_top_parser(subparsers)
    setup_distribution_parser(subparsers)
    setup_score_parser(subparsers)
    setup_engagement_parser(subparsers)
    setup_track_parser(subparsers)
    setup_refresh_parser(subparsers)
    setup_report_parser(subparsers)
    setup_export_parser(subparsers)

    # Parse arguments
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Execute command
    if hasattr(args, 'func'):
        args.func(args)
    else:
        parser.print_help()


if __name__ == '__main__':
    main()
