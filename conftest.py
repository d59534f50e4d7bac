# Global pytest configuration for this repo
# - Keep service-account keys and build output out of test discovery

collect_ignore_glob = [
    "keys/**",
    ".venv/**",
    "build/**",
    "dist/**",
]
