#!/usr/bin/env python3
"""Finance Tracker CLI - inspect and edit the local finance database."""
import argparse
import sys
import logging
from datetime import date
from typing import Optional

from finance_tracker.api.finance_service import FinanceService
from finance_tracker.db.errors import StoreError


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S"
    )


def _month_bounds(today: Optional[date] = None):
    today = today or date.today()
    start = today.replace(day=1)
    if start.month == 12:
        next_month = start.replace(year=start.year + 1, month=1)
    else:
        next_month = start.replace(month=start.month + 1)
    end = date.fromordinal(next_month.toordinal() - 1)
    return start.isoformat(), end.isoformat()


def cmd_init(args):
    """Create the database and seed defaults on first run."""
    service = FinanceService(args.db)
    result = service.initialize()
    service.shutdown()

    print(f"Database ready at {service.db_path} (version {result['version']})")
    if result["first_launch"]:
        print(f"  Seeded categories: {result['seeded_categories']}")
        print(f"  Seeded settings:   {result['seeded_settings']}")
    return 0


def cmd_summary(args):
    """Show income/expense summary for a date window."""
    default_start, default_end = _month_bounds()
    start = args.start or default_start
    end = args.end or default_end

    with FinanceService(args.db) as service:
        summary = service.transactions.get_summary(start, end)
        spending = service.transactions.get_spending_by_category(start, end)
        currency = service.settings.get_with_default("currency", "USD")

    print("=" * 50)
    print(f"SUMMARY {start} .. {end}")
    print("=" * 50)
    print(f"\nTransactions:   {summary['total_count']}")
    print(f"Total income:   {summary['total_income']:,.2f} {currency}")
    print(f"Total expenses: {summary['total_expense']:,.2f} {currency}")
    print(f"Balance:        {summary['balance']:,.2f} {currency}")

    if spending:
        print("\n" + "-" * 50)
        print("SPENDING BY CATEGORY")
        print("-" * 50)
        for row in spending:
            print(f"  {row['name']:20s}  {row['transaction_count']:4d} txns  {row['total_amount']:10,.2f}")
    return 0


def cmd_categories(args):
    """List all categories."""
    with FinanceService(args.db) as service:
        categories = service.categories.get_all()

    for c in categories:
        marker = "*" if c["is_default"] else " "
        print(f"  {marker} {c['id']:4d}  {c['name']:20s}  {c['color'] or ''}")
    return 0


def cmd_transactions(args):
    """List transactions, most recent first."""
    with FinanceService(args.db) as service:
        txns = service.transactions.get_all(
            start_date=args.start,
            end_date=args.end,
            category_id=args.category,
            txn_type=args.type,
            limit=args.limit
        )

    if not txns:
        print("No transactions found.")
        return 0

    for t in txns:
        category = t.get("category_name") or "Uncategorized"
        print(f"  ID {t['id']:5d} | {t['date']} | {t['type']:7s} | {t['amount']:10,.2f} | "
              f"{category:15s} | {t['description']}")
    return 0


def cmd_add(args):
    """Add a transaction."""
    with FinanceService(args.db) as service:
        txn = service.transactions.create(
            amount=args.amount,
            description=args.description,
            type=args.type,
            date=args.date,
            category_id=args.category,
            is_manually_set=args.category is not None
        )
    print(f"Added transaction {txn['id']}: {txn['type']} {txn['amount']:.2f} on {txn['date']}")
    return 0


def cmd_budgets(args):
    """Show progress of active budgets."""
    with FinanceService(args.db) as service:
        progress = service.budgets.get_active_progress(args.date)

    if not progress:
        print("No active budgets.")
        return 0

    for p in progress:
        print(f"  {p['category_name']:20s} {p['spent']:10,.2f} / {p['budget_amount']:10,.2f} "
              f"({p['percentage']:6.2f}%)  {p['status']}")
    return 0


def cmd_settings(args):
    """Show settings, or set one."""
    with FinanceService(args.db) as service:
        if args.key and args.value is not None:
            service.settings.set(args.key, args.value)
            print(f"{args.key} = {args.value}")
            return 0
        settings = service.settings.get_all()

    for key, value in sorted(settings.items()):
        if args.key and key != args.key:
            continue
        print(f"  {key:25s} {value}")
    return 0


def cmd_reset(args):
    """Delete the database file."""
    if not args.yes:
        print("Refusing to delete the database without --yes")
        return 1
    service = FinanceService(args.db)
    service.reset()
    print(f"Deleted {service.db_path}")
    return 0


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Finance Tracker - local storage for transactions, budgets and settings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  finance-tracker init                          Create the database
  finance-tracker add 12.50 "Lunch" --category 1
  finance-tracker summary --start 2026-01-01    Income/expense summary
  finance-tracker budgets                       Progress of active budgets
  finance-tracker settings currency EUR         Change a setting
"""
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--db", help="Database file (default: ~/.finance_tracker/FinanceTracker.db)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    init_parser = subparsers.add_parser("init", help="Create database and seed defaults")
    init_parser.set_defaults(func=cmd_init)

    summary_parser = subparsers.add_parser("summary", help="Show income/expense summary")
    summary_parser.add_argument("--start", help="Start date YYYY-MM-DD (default: first of month)")
    summary_parser.add_argument("--end", help="End date YYYY-MM-DD (default: end of month)")
    summary_parser.set_defaults(func=cmd_summary)

    cats_parser = subparsers.add_parser("categories", help="List all categories")
    cats_parser.set_defaults(func=cmd_categories)

    txn_parser = subparsers.add_parser("transactions", help="List transactions")
    txn_parser.add_argument("--start", help="Start date YYYY-MM-DD")
    txn_parser.add_argument("--end", help="End date YYYY-MM-DD")
    txn_parser.add_argument("--category", type=int, help="Category ID")
    txn_parser.add_argument("--type", choices=["income", "expense"], help="Transaction type")
    txn_parser.add_argument("-n", "--limit", type=int, default=20, help="Max results")
    txn_parser.set_defaults(func=cmd_transactions)

    add_parser = subparsers.add_parser("add", help="Add a transaction")
    add_parser.add_argument("amount", type=float, help="Amount (positive)")
    add_parser.add_argument("description", help="Description")
    add_parser.add_argument("--type", choices=["income", "expense"], default="expense",
                            help="Transaction type (default: expense)")
    add_parser.add_argument("--date", help="Date YYYY-MM-DD (default: today)")
    add_parser.add_argument("--category", type=int, help="Category ID")
    add_parser.set_defaults(func=cmd_add)

    budgets_parser = subparsers.add_parser("budgets", help="Show active budget progress")
    budgets_parser.add_argument("--date", help="Date YYYY-MM-DD (default: today)")
    budgets_parser.set_defaults(func=cmd_budgets)

    settings_parser = subparsers.add_parser("settings", help="Show or change settings")
    settings_parser.add_argument("key", nargs="?", help="Setting key")
    settings_parser.add_argument("value", nargs="?", help="New value")
    settings_parser.set_defaults(func=cmd_settings)

    reset_parser = subparsers.add_parser("reset", help="Delete the database file")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm deletion")
    reset_parser.set_defaults(func=cmd_reset)

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except StoreError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
