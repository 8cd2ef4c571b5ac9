"""
Telemetry Agent 主程序入口

使用方式:
    python -m telemetry_agent
    或
    telemetry-agent --once

配置通过环境变量提供（见 telemetry_agent.config）。
"""

import argparse
import asyncio
import logging
import signal
import sys

from pydantic import ValidationError

from .config import AgentSettings, get_settings
from .runner import AgentRunner
from .sender import SampleSender

ENV_HELP = """
Environment variables:
  TELEMETRY_AGENT_SERVER_URL               Collector URL (default: http://localhost:5000/systemdata)
  TELEMETRY_AGENT_MACHINE_ID               Machine identifier (default: hostname)
  TELEMETRY_AGENT_INTERVAL_SECONDS         Sampling interval in seconds (default: 60)
  TELEMETRY_AGENT_MAX_RETRIES              Maximum send attempts (default: 3)
  TELEMETRY_AGENT_RETRY_DELAY_SECONDS      Base retry delay in seconds (default: 5)
  TELEMETRY_AGENT_MAX_OFFLINE_SECONDS      Exit after this long without a successful send (default: 300)
  TELEMETRY_AGENT_VERBOSE                  Enable verbose logging (default: false)
"""


def setup_logging(verbose: bool):
    """配置日志：verbose 输出 INFO，否则只输出 WARNING 以上"""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="telemetry-agent",
        description="Sample CPU/RAM/disk usage and push it to a Telemetry Collector.",
        epilog=ENV_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--once", action="store_true", help="collect and send a single sample, then exit (exit code 1 if sending fails)")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable verbose logging")
    return parser.parse_args(argv)


async def run(settings: AgentSettings, once: bool = False) -> int:
    """创建上报客户端与主循环并运行"""
    sender = SampleSender(settings)
    runner = AgentRunner(settings, sender)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, runner.stop)
        except NotImplementedError:
            # Windows 事件循环不支持 add_signal_handler
            pass

    try:
        return await runner.run(once=once)
    finally:
        await sender.aclose()


def main(argv=None):
    """主程序入口"""
    args = parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    setup_logging(settings.verbose or args.verbose)

    try:
        exit_code = asyncio.run(run(settings, once=args.once))
    except KeyboardInterrupt:
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
