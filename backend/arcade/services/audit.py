from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from arcade import db
from arcade.models import AuditLog


def log_action(user_id, action, table, description=None, metadata=None):
    """Append an audit row. Never raises: a failed write is only logged."""
    try:
        db.session.add(AuditLog(
            user_id=user_id,
            action=action,
            table_name=table,
            description=description,
            details=metadata,
        ))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.warning(f"[audit] failed to write action={action} user={user_id}")


def recent_logs(page=1, limit=10, user_id=None, table=None):
    query = AuditLog.query
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    if table is not None:
        query = query.filter_by(table_name=table)
    page = max(1, int(page))
    limit = max(1, min(100, int(limit)))
    total = query.count()
    rows = query.order_by(AuditLog.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        'page': page,
        'limit': limit,
        'total': total,
        'data': [
            {
                'id': r.id,
                'user_id': r.user_id,
                'action': r.action,
                'table': r.table_name,
                'description': r.description,
                'metadata': r.details,
                'timestamp': r.timestamp.isoformat() if r.timestamp else None,
            }
            for r in rows
        ],
    }
