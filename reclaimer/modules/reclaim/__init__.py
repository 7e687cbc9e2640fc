"""
Reclaim Module
==============
Closes abandoned token accounts and returns their rent to the operator.

Pipeline per cycle (strictly sequential):
- selector: MONITORING accounts + PROBATION accounts past their cooldown
- classifier: closed / system wallet / token account / other
- state_machine: next status per account, close submission when safe
- runner: batch loop, summary, notifier

Safety Guardrails:
- BATCH_SIZE bounds every cycle
- Funded token accounts only ever go to PROBATION
- Only operator-owned, empty token accounts are closed
- dry_run never reaches the submitter
"""

from reclaimer.modules.reclaim.runner import ReclaimCycleRunner, run_scheduled

__all__ = ['ReclaimCycleRunner', 'run_scheduled']
