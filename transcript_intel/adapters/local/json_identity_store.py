"""JsonFileIdentityStore — identity store persisted to a single JSON file.

The whole state is rewritten after every change; meant for local
single-process deployments. Writes go to a temp file that replaces the
store file, so a crash mid-write leaves the previous state intact.
"""

import json
import logging
import os
import tempfile
from dataclasses import asdict
from pathlib import Path

from transcript_intel.adapters.memory.identity_store import InMemoryIdentityStore
from transcript_intel.domain.models import (
    CustomNamePattern, MatchMethod, SpeakerMatch, VoiceProfile,
)

logger = logging.getLogger(__name__)

CORRUPT_SUFFIX = ".corrupt"


class JsonFileIdentityStore(InMemoryIdentityStore):
    def __init__(self, store_file: str = "/data/identity-store.json"):
        super().__init__()
        self._store_file = store_file
        self._load()

    def _load(self) -> None:
        try:
            with open(self._store_file) as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.info(f"No identity store at {self._store_file}, starting empty")
            return
        except json.JSONDecodeError as e:
            # Keep the unreadable file aside; the next write would otherwise replace it.
            quarantined = self._store_file + CORRUPT_SUFFIX
            os.replace(self._store_file, quarantined)
            logger.error(f"Identity store {self._store_file} is corrupt ({e}), moved to {quarantined}")
            return

        for raw in data.get("profiles", []):
            profile = VoiceProfile(**raw)
            self._profiles[profile.id] = profile
        for raw in data.get("matches", []):
            match = SpeakerMatch(**{**raw, "match_method": MatchMethod(raw["match_method"])})
            self._matches[(match.meeting_id, match.speaker_label)] = match
        for org_id, patterns in data.get("patterns", {}).items():
            self._patterns[org_id] = [CustomNamePattern(**p) for p in patterns]

        logger.info(
            f"Loaded identity store: {len(self._profiles)} profiles, "
            f"{len(self._matches)} matches from {self._store_file}"
        )

    def _persist(self) -> None:
        data = {
            "profiles": [asdict(p) for p in self._profiles.values()],
            "matches": [
                {**asdict(m), "match_method": m.match_method.value}
                for m in self._matches.values()
            ],
            "patterns": {
                org_id: [asdict(p) for p in patterns]
                for org_id, patterns in self._patterns.items()
            },
        }
        path = Path(self._store_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            os.unlink(tmp_path)
            raise
