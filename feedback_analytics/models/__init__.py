from .database import init_db, get_db, get_db_path, insert_snapshots, load_snapshots, count_snapshots
from .snapshot import FeedbackSnapshot, LectureType

__all__ = ['init_db', 'get_db', 'get_db_path', 'insert_snapshots', 'load_snapshots',
           'count_snapshots', 'FeedbackSnapshot', 'LectureType']
