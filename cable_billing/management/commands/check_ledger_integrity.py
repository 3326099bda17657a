# Filename: cable_billing/management/commands/check_ledger_integrity.py
# Read-only: reports ledger inconsistencies, never repairs them.

import logging
from collections import Counter

from django.core.management.base import BaseCommand, CommandError

from cable_billing.services import billing_service, ledger_service

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        'Verifies that every bill, payment, due settlement and box action has exactly one ledger '
        'entry, and that bill and settlement amounts reconcile. Changes nothing.'
    )

    def add_arguments(self, parser):
        parser.add_argument(
            '--customer',
            type=str,
            help='Only audit records of this customer (UUID).',
        )
        parser.add_argument(
            '--fail-on-error',
            action='store_true',
            help='Exit with a non-zero status when any issue is found.',
        )

    def handle(self, *args, **options):
        customer_id = options.get('customer')
        if customer_id:
            customer = billing_service.get_customer(customer_id)
            if customer is None:
                raise CommandError(f"Customer '{customer_id}' not found.")
            self.stdout.write(f"Auditing ledger for customer {customer.account_no} (ID: {customer.pk})...")
        else:
            self.stdout.write("Auditing ledger for all customers...")

        issues = ledger_service.find_ledger_issues(customer_id=customer_id)

        if not issues:
            self.stdout.write(self.style.SUCCESS("Ledger is consistent. No issues found."))
            return

        for issue in issues:
            self.stdout.write(self.style.WARNING(
                f"  [{issue['kind']}] {issue['object_type']} {issue['object_id']}: {issue['detail']}"
            ))

        summary = Counter(issue['kind'] for issue in issues)
        self.stdout.write(self.style.ERROR(
            f"\nFound {len(issues)} issue(s): "
            + ", ".join(f"{kind}={count}" for kind, count in sorted(summary.items()))
        ))

        if options['fail_on_error']:
            raise CommandError(f"Ledger integrity check failed with {len(issues)} issue(s).")
