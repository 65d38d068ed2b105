"""Ping subsystem — target prober and sweep scheduler."""

from .engine import ProbeOutcome, probe
from .scheduler import SweepReport, SweepScheduler, TargetSweeper
