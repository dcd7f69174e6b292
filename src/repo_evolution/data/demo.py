"""Small hand-written project history for demos and smoke tests."""

from datetime import datetime
from typing import List

from repo_evolution.models.change import ChangeRecord, ChangeStatus, TimelineEntry


def _added(path: str, lines: int) -> ChangeRecord:
    return ChangeRecord(path=path, status=ChangeStatus.ADDED, additions=lines)


def _modified(path: str, additions: int, deletions: int = 0) -> ChangeRecord:
    return ChangeRecord(
        path=path,
        status=ChangeStatus.MODIFIED,
        additions=additions,
        deletions=deletions,
    )


def demo_timeline() -> List[TimelineEntry]:
    """A five step history touching every kind of change."""
    return [
        TimelineEntry(
            id="abc123",
            message="Initial commit",
            author="Developer",
            timestamp=datetime(2024, 1, 1),
            changes=[_added("README.md", 50), _added("src/index.ts", 100)],
        ),
        TimelineEntry(
            id="def456",
            message="Add components",
            author="Developer",
            timestamp=datetime(2024, 1, 2),
            changes=[
                _modified("src/index.ts", 50),
                _added("src/components/App.tsx", 200),
                _added("src/components/Header.tsx", 80),
            ],
        ),
        TimelineEntry(
            id="ghi789",
            message="Add styles and utils",
            author="Developer",
            timestamp=datetime(2024, 1, 3),
            changes=[
                _modified("README.md", 750),
                _modified("src/components/App.tsx", 2400, 100),
                _added("src/styles/main.css", 1500),
                _added("src/utils/helpers.ts", 1000),
            ],
        ),
        TimelineEntry(
            id="jkl012",
            message="Refactor and optimize",
            author="Developer",
            timestamp=datetime(2024, 1, 4),
            changes=[
                _modified("src/index.ts", 50),
                _modified("src/components/App.tsx", 100, 800),
                _modified("src/components/Header.tsx", 220),
                _modified("src/styles/main.css", 0, 300),
                _modified("src/utils/helpers.ts", 500),
            ],
        ),
        TimelineEntry(
            id="mno345",
            message="Move helpers and drop styles",
            author="Developer",
            timestamp=datetime(2024, 1, 5),
            changes=[
                ChangeRecord(
                    path="src/lib/helpers.ts",
                    status=ChangeStatus.RENAMED,
                    previous_path="src/utils/helpers.ts",
                ),
                ChangeRecord(
                    path="src/styles/main.css",
                    status=ChangeStatus.REMOVED,
                    deletions=1200,
                ),
            ],
        ),
    ]
