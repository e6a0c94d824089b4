from prometheus_client import Counter

WORKOUTS_CREATED_TOTAL = Counter(
    "workouts_created_total",
    "Number of workouts created",
    ["source"],  # blank | template | previous
)

WORKOUTS_COMPLETED_TOTAL = Counter(
    "workouts_completed_total",
    "Number of workout completion transitions",
)

SETS_LOGGED_TOTAL = Counter(
    "sets_logged_total",
    "Number of sets logged",
    ["backdated"],
)

DERIVED_COMPUTATION_FAILURES_TOTAL = Counter(
    "derived_computation_failures_total",
    "Number of best-effort progression/calorie computations that failed",
    ["step"],  # progression | calories
)
