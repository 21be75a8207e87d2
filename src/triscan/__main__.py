"""
Entry point for the triangular scanner.

Usage:
    python -m triscan
    triscan  # if installed via pip
"""

import asyncio
import sys
from collections.abc import Callable, Coroutine
from typing import Any


def _select_runner(use_uvloop: bool) -> tuple[Callable[[Coroutine[Any, Any, int]], int], bool]:
    """Pick uvloop.run for better performance when it is enabled and installed."""
    if use_uvloop:
        try:
            import uvloop
        except ImportError:
            pass
        else:
            return uvloop.run, True

    return asyncio.run, False


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from triscan import __version__
    from triscan.config.settings import get_settings
    from triscan.core.engine import ScannerEngine

    # Print banner
    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     TRIANGULAR ARBITRAGE SCANNER v{__version__:<22}      ║
║                                                               ║
║     Live cycle search over the Binance ticker stream          ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    # Load settings
    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}")
        print("\nCheck your environment or .env file, for example:")
        print("  REFERENCE_ASSET=USDT")
        print("  FEE_PERCENT=0.3")
        return 1

    run, uvloop_enabled = _select_runner(settings.use_uvloop)

    # Print configuration summary
    print("Configuration:")
    print(f"  Reference asset: {settings.reference_asset}")
    print(f"  Fee:             {settings.fee_percent:.3f}%")
    print(f"  Throttle:        {settings.dispatch_interval_ms}ms")
    print(f"  Depth levels:    {settings.depth_limit}")
    print(f"  Scoring model:   {settings.model_url or 'None'}")
    print(f"  uvloop:          {'Enabled' if uvloop_enabled else 'Disabled'}")
    print()

    # Run the engine
    async def run_engine() -> int:
        engine = ScannerEngine(settings)

        try:
            await engine.setup()
            await engine.run()
            return 0

        except KeyboardInterrupt:
            print("\nInterrupted by user")
            return 0

        except Exception as e:
            print(f"\nFatal error: {e}")
            import traceback

            traceback.print_exc()
            return 1

        finally:
            await engine.shutdown()

    return run(run_engine())


if __name__ == "__main__":
    sys.exit(main())
