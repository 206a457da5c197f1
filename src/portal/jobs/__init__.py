"""Scheduled maintenance jobs."""

from .maintenance import register_scheduler, run_expiry_once, run_reconcile_once

__all__ = ["register_scheduler", "run_expiry_once", "run_reconcile_once"]
