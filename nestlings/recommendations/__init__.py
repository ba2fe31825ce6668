"""
Recommendation engine.

Responsibilities:
- Score catalog products against a caregiver's preference profile.
- Deduplicate, diversify by preferred category and cap the ranked list.
- Remember what was recommended so history views can replay it.
"""
