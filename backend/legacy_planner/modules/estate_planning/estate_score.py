"""
Estate score: a 0-100 summary of how far the user is through the workflow.
"""

from legacy_planner.modules.estate_planning.types import MilestoneFlags

# Step weight, in workflow order. Sums to 100.
STEP_WEIGHTS = {
    "profile_setup": 20,            # Step 1: Profile setup
    "assets_added": 20,             # Step 2: Assets
    "beneficiaries_chosen": 20,     # Step 3: Beneficiaries
    "last_wishes_documented": 15,   # Step 4: Last wishes
    "executor_chosen": 15,          # Step 5: Executor
    "will_reviewed": 5,             # Step 6: Will review
    "will_downloaded": 5,           # Step 7: Download & sign
}


def calculate_estate_score(flags: MilestoneFlags) -> int:
    """Sum the weights of completed steps. No partial credit within a step."""
    return sum(weight for step, weight in STEP_WEIGHTS.items() if getattr(flags, step, False))
