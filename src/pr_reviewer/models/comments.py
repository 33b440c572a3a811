from datetime import datetime
from pydantic import BaseModel


class LineCoordinates(BaseModel):
    right_start: int | None = None
    right_end: int | None = None
    left_start: int | None = None
    left_end: int | None = None

    def endpoints(self) -> list[int]:
        return [
            line
            for line in (self.right_start, self.right_end, self.left_start, self.left_end)
            if line is not None
        ]


class CommentAuthor(BaseModel):
    unique_name: str | None = None
    display_name: str | None = None


class ExistingComment(BaseModel):
    """A comment already present on the pull request (read-only snapshot)."""

    file_path: str | None = None
    line_coordinates: LineCoordinates | None = None
    author: CommentAuthor = CommentAuthor()
    content: str = ""
    is_deleted: bool = False
    resolved: bool = False
    published_at: datetime | None = None
