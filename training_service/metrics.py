from prometheus_client import Counter

PROGRAMS_CREATED_TOTAL = Counter(
    "training_programs_created_total",
    "Number of training programs created",
)

PROGRAMS_CLONED_TOTAL = Counter(
    "training_programs_cloned_total",
    "Number of training programs deep-copied",
)

WEEKS_DUPLICATED_TOTAL = Counter(
    "training_weeks_duplicated_total",
    "Number of weeks duplicated into a destination slot",
)

DAYS_CLONED_TOTAL = Counter(
    "training_days_cloned_total",
    "Number of days cloned into a destination slot",
)

WORKOUT_EXERCISES_COPIED_TOTAL = Counter(
    "training_workout_exercises_copied_total",
    "Number of single workout exercises copied to another day",
)

SLOT_CONFLICTS_TOTAL = Counter(
    "training_slot_conflicts_total",
    "Number of rejected writes because the destination slot was occupied",
    ["kind"],
)

ASSIGNMENTS_CREATED_TOTAL = Counter(
    "training_assignments_created_total",
    "Number of program assignments created",
)

ASSIGNMENT_CONFLICTS_TOTAL = Counter(
    "training_assignment_conflicts_total",
    "Number of assign attempts rejected because the user holds an incomplete program",
)

TREE_REFRESHES_TOTAL = Counter(
    "training_tree_refreshes_total",
    "Number of program tree reloads from the store",
)

TREE_CACHE_HITS_TOTAL = Counter(
    "training_tree_cache_hits_total",
    "Number of successful Redis cache hits for program trees",
)

TREE_CACHE_MISSES_TOTAL = Counter(
    "training_tree_cache_misses_total",
    "Number of Redis cache misses for program trees",
)

TREE_CACHE_ERRORS_TOTAL = Counter(
    "training_tree_cache_errors_total",
    "Number of Redis cache errors for program trees",
)
