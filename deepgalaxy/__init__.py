"""
DeepGalaxy - personal spaced repetition scheduler.

SM-2 intervals corrected by the learner's observed forgetting rate
and a per-card retention estimate.
"""
