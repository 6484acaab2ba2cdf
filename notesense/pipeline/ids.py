"""Run-scoped identifier generation."""


class IdGenerator:
    """Issues section and suggestion ids for a single generation run.

    Ids are namespaced by the first eight characters of the note id and
    numbered from 1, so two runs over the same note produce identical ids.
    """

    def __init__(self, note_id: str):
        self._prefix = note_id[:8]
        self._section_seq = 0
        self._suggestion_seq = 0

    def next_section_id(self) -> str:
        self._section_seq += 1
        return f"sec_{self._prefix}_{self._section_seq}"

    def next_suggestion_id(self) -> str:
        self._suggestion_seq += 1
        return f"sug_{self._prefix}_{self._suggestion_seq}"
