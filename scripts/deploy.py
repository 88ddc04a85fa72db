"""
Deploy helper — stands up a treasury on the simulated ledger for a network,
or checks that the service is ready to run.

Usage:
    python -m scripts.deploy [--network mumbai] [--fixtures scripts/fixtures/polygon_demo.json]
    python -m scripts.deploy --check
    python -m scripts.deploy --init-db
"""
import sys
import asyncio
import argparse
from shared.utils.logging import setup_logging


def check_imports():
    """Verify the service modules import cleanly."""
    print("Checking imports...")
    errors = []

    modules = [
        ("Treasury API", "agents.treasury.main"),
        ("Chain inspector", "agents.treasury.services.chain"),
    ]

    for name, module_path in modules:
        try:
            __import__(module_path)
            print(f"  {name:20s} OK")
        except Exception as e:
            print(f"  {name:20s} FAILED: {e}")
            errors.append((name, str(e)))

    return errors


async def check_database():
    """Verify database connectivity."""
    print("\nChecking database...")
    try:
        from shared.database import async_session
        if async_session is None:
            print("  Database: NOT CONFIGURED (no DATABASE_URL)")
            return False

        from sqlalchemy import text
        async with async_session() as db:
            await db.execute(text("SELECT 1"))
            print("  Database: CONNECTED")
            return True
    except Exception as e:
        print(f"  Database: FAILED ({e})")
        return False


async def check_blockchain():
    """Verify RPC connectivity."""
    print("\nChecking blockchain...")
    try:
        from shared.web3_client import w3
        block = w3.eth.block_number
        print(f"  RPC: CONNECTED (block {block:,})")
        return True
    except Exception as e:
        print(f"  RPC: FAILED ({e})")
        return False


async def run_checks():
    print("=" * 50)
    print("Treasury Deployment Check")
    print("=" * 50)

    errors = check_imports()
    db_ok = await check_database()
    chain_ok = await check_blockchain()

    print("\n" + "=" * 50)
    print("RESULTS:")
    print(f"  Imports:    {'PASS' if not errors else f'FAIL ({len(errors)} errors)'}")
    print(f"  Database:   {'PASS' if db_ok else 'SKIP'}")
    print(f"  Blockchain: {'PASS' if chain_ok else 'FAIL'}")

    if errors:
        print("\nFix issues before deploying.")
        sys.exit(1)
    print("\nReady to deploy!")


def deploy(network: str | None, fixtures: str | None):
    from agents.treasury.services.bootstrap import deploy_treasury, load_fixture_file

    treasury = deploy_treasury(network)
    if fixtures:
        load_fixture_file(treasury, fixtures)
    print(f"Treasury deployed to {treasury.address} (stable asset {treasury.stable_asset})")
    return treasury


def main(argv=None):
    parser = argparse.ArgumentParser(description="Deploy or check the treasury service")
    parser.add_argument("--network", default=None, help="hardhat, mumbai or matic")
    parser.add_argument("--fixtures", default=None, help="JSON file seeding the simulated ledger")
    parser.add_argument("--check", action="store_true", help="Run readiness checks")
    parser.add_argument("--init-db", action="store_true", help="Create database tables")
    args = parser.parse_args(argv)

    setup_logging()
    try:
        if args.init_db:
            from scripts.init_db import init_database
            asyncio.run(init_database())
        elif args.check:
            asyncio.run(run_checks())
        else:
            deploy(args.network, args.fixtures)
    except Exception as e:
        print(f"ERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
