from datetime import datetime

from automart.extensions import db


class SecurityLog(db.Model):
    __tablename__ = "security_logs"

    id = db.Column(db.Integer, primary_key=True)

    event = db.Column(db.String(64), nullable=False, index=True)
    event_timestamp = db.Column(db.String(64), nullable=False)
    details = db.Column(db.Text, nullable=True)  # JSON string
    user_agent = db.Column(db.String(500), nullable=True)
    url = db.Column(db.String(500), nullable=True)
    session_id = db.Column(db.String(128), nullable=True)

    client_ip = db.Column(db.String(64), nullable=True)
    risk_score = db.Column(db.Integer, nullable=False, default=1)
    alert_level = db.Column(db.String(8), nullable=False, default="low", index=True)  # low|medium|high

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "event": self.event,
            "timestamp": self.event_timestamp,
            "details": self.details or "{}",
            "user_agent": self.user_agent or "",
            "url": self.url or "",
            "session_id": self.session_id or "anonymous",
            "client_ip": self.client_ip or "unknown",
            "risk_score": int(self.risk_score or 0),
            "alert_level": self.alert_level,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
