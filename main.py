import sys
import asyncio
from creatorkit.app import create_app
from creatorkit.core.errors import CreatorKitError

USAGE = "Usage: python main.py <hook|script|caption|calendar|rewrite> <request text>"


def print_fragment(fragment: str):
    print(fragment, end="", flush=True)


async def main(argv):
    app = await create_app()
    try:
        quota = await app.quota.refresh()
        print(f"👤 {'Guest' if app.session.is_guest else app.session.user_id}")
        print(f"📊 Text requests left today: {quota['text'].remaining}")
        print(f"🖼️ Image requests left today: {quota['image'].remaining}")

        if len(argv) < 2:
            print(USAGE)
            return

        kind, text = argv[0], " ".join(argv[1:])
        print(f"\n{app.profile.welcome_message()}\n")
        try:
            await app.ai.generate_stream(kind, app.profile.profile, text, on_fragment=print_fragment)
            print()
        except CreatorKitError as e:
            print(f"\n❌ {e}")
    finally:
        await app.close()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
