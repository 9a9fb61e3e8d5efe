"""
Reset the DeepGalaxy database.

DANGEROUS: This deletes all decks, cards and review history!
Only use when you want to start fresh for testing.

Usage:
    python -m scripts.reset_db
"""

from deepgalaxy.scheduling import get_engine, reset_db


def main():
    print("=" * 60)
    print("WARNING: Reset DeepGalaxy Database")
    print("=" * 60)
    print()
    print("This will DELETE:")
    print("  - All decks and cards (including SM-2 state)")
    print("  - All review logs (the forgetting rate starts over)")
    print()

    response = input("Are you sure you want to reset? (type 'yes' to confirm): ")

    if response.lower() == "yes":
        print("\nResetting database...")
        engine = get_engine()
        reset_db(engine)
        engine.dispose()
        print("[OK] Database reset complete!")
        print("\nThe database now has empty tables ready for new decks.")
    else:
        print("\nCancelled. No changes made.")


if __name__ == "__main__":
    main()
