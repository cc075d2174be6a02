"""Command-line escalation monitor for ResolveIt admins."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Optional, Sequence

from resolveit import obs
from resolveit.domain.complaints.api import ComplaintsAPI
from resolveit.domain.escalation.policy import can_monitor_escalations
from resolveit.domain.escalation.tracker import EscalationTracker
from resolveit.domain.identity.session import login
from resolveit.infra.http import ApiClient, ApiError
from resolveit.obs.logging import bind_context, reset_context
from resolveit.settings import settings
from resolveit.workers.escalation_poller import EscalationPoller

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
	parser = argparse.ArgumentParser(description="Watch complaints that require escalation")
	parser.add_argument("--email", required=True, help="Admin account email")
	parser.add_argument(
		"--password",
		default=os.environ.get("RESOLVEIT_PASSWORD"),
		help="Admin password (defaults to $RESOLVEIT_PASSWORD)",
	)
	parser.add_argument("--base-url", default=settings.api_base_url, help="Backend base URL")
	parser.add_argument(
		"--interval",
		type=float,
		default=settings.escalation_poll_interval_seconds,
		help="Seconds between refreshes",
	)
	parser.add_argument("--once", action="store_true", help="Refresh once, print stats and exit")
	parser.add_argument("--trigger", action="store_true", help="Trigger auto-escalation before refreshing")
	args = parser.parse_args(argv)
	if not args.password:
		parser.error("a password is required (--password or $RESOLVEIT_PASSWORD)")
	return args


class _SnapshotLogger:
	"""Tracker wrapper that logs a snapshot after every scheduled refresh."""

	def __init__(self, tracker: EscalationTracker) -> None:
		self.tracker = tracker

	async def refresh(self) -> bool:
		applied = await self.tracker.refresh()
		logger.info("escalation snapshot", extra=self.tracker.snapshot())
		return applied

	def close(self) -> None:
		self.tracker.close()


async def run(args: argparse.Namespace) -> int:
	async with ApiClient(base_url=args.base_url) as client:
		try:
			session = await login(client, args.email, args.password)
		except ApiError as exc:
			logger.error("login failed", extra={"status": exc.status, "detail": exc.message})
			return 1
		client.session = session
		if not session.is_authenticated:
			logger.error("login returned no user profile")
			return 1
		if not can_monitor_escalations(session.role):
			logger.error("account is not allowed to monitor escalations")
			return 2
		tokens = bind_context(user_id=str(session.user_id))
		try:
			tracker = EscalationTracker(ComplaintsAPI(client), session=session)
			if args.trigger:
				result = await tracker.trigger_auto_escalation()
				logger.info("auto-escalation trigger finished", extra={"ok": result.ok, "detail": result.message})
			if args.once:
				if not args.trigger:
					await tracker.refresh()
				print(json.dumps(tracker.snapshot(), indent=2))
				return 0 if tracker.error is None else 1
			poller = EscalationPoller(_SnapshotLogger(tracker), interval=args.interval)
			poller.start()
			try:
				await asyncio.Event().wait()
			finally:
				await poller.stop()
		finally:
			reset_context(tokens)
	return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
	args = _parse_args(argv)
	obs.init()
	try:
		return asyncio.run(run(args))
	except KeyboardInterrupt:
		return 130


if __name__ == "__main__":
	sys.exit(main())
