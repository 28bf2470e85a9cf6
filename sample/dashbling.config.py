"""Sample dashbling project configuration."""

import sample_jobs

config = {
    "jobs": [
        {"schedule": "*/5 * * * *", "fn": sample_jobs.report_orders},
        {"schedule": "0 * * * * *", "fn": sample_jobs.report_clock},
    ],
    "onStart": sample_jobs.on_start,
    "port": 8080,
}
