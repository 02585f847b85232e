"""Technician metrics aggregated from appointments and service records"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ...models import Appointment, ServiceRecord, User

logger = logging.getLogger(__name__)

EMPTY_ROW = {
    "appointmentsScheduled": 0,
    "appointmentsCompleted": 0,
    "appointmentsCancelled": 0,
    "servicesCompleted": 0,
    "totalWorkMinutes": 0,
    "averageServiceDuration": 0.0,
    "totalRevenue": 0.0,
}


RANKING_KEYS = {
    "revenue": "totalRevenue",
    "services": "servicesCompleted",
    "efficiency": "completionRate",
}


class MetricsService:
    def __init__(self, db: Session):
        self.db = db

    def _scope(self, model, user: User):
        """Admins see their whole partner, everyone else their own records"""
        if user.role == "admin":
            return model.partner_id == user.partner_id
        return model.user_id == user.id

    def technician_metrics(self, user: User, start: datetime, end: datetime) -> dict:
        if start > end:
            raise HTTPException(status_code=400, detail="startDate must be before endDate")

        appt_technician = func.coalesce(Appointment.technician_id, Appointment.user_id)
        appointment_rows = (
            self.db.query(
                appt_technician.label("technician_id"),
                func.count(Appointment.id),
                func.sum(case((Appointment.status == "completed", 1), else_=0)),
                func.sum(case((Appointment.status == "cancelled", 1), else_=0)),
            )
            .filter(self._scope(Appointment, user), Appointment.date >= start, Appointment.date <= end)
            .group_by(appt_technician)
            .all()
        )

        service_technician = func.coalesce(ServiceRecord.technician_id, ServiceRecord.user_id)
        service_rows = (
            self.db.query(
                service_technician.label("technician_id"),
                func.count(ServiceRecord.id),
                func.sum(ServiceRecord.duration),
                func.avg(ServiceRecord.duration),
                func.sum(ServiceRecord.cost),
            )
            .filter(self._scope(ServiceRecord, user), ServiceRecord.date >= start, ServiceRecord.date <= end)
            .group_by(service_technician)
            .all()
        )

        rows: dict[int, dict] = {}
        for technician_id, scheduled, completed, cancelled in appointment_rows:
            row = rows.setdefault(technician_id, dict(EMPTY_ROW))
            row["appointmentsScheduled"] = scheduled or 0
            row["appointmentsCompleted"] = int(completed or 0)
            row["appointmentsCancelled"] = int(cancelled or 0)

        for technician_id, count, minutes, average, revenue in service_rows:
            row = rows.setdefault(technician_id, dict(EMPTY_ROW))
            row["servicesCompleted"] = count or 0
            row["totalWorkMinutes"] = int(minutes or 0)
            row["averageServiceDuration"] = round(float(average or 0), 1)
            row["totalRevenue"] = round(float(revenue or 0), 2)

        names = {}
        if rows:
            names = dict(self.db.query(User.id, User.name).filter(User.id.in_(list(rows))).all())

        technicians = [
            {"technicianId": technician_id, "technicianName": names.get(technician_id), **row}
            for technician_id, row in sorted(rows.items())
        ]

        total_services = sum(t["servicesCompleted"] for t in technicians)
        total_minutes = sum(t["totalWorkMinutes"] for t in technicians)
        summary = {
            "technicians": len(technicians),
            "appointmentsScheduled": sum(t["appointmentsScheduled"] for t in technicians),
            "appointmentsCompleted": sum(t["appointmentsCompleted"] for t in technicians),
            "appointmentsCancelled": sum(t["appointmentsCancelled"] for t in technicians),
            "servicesCompleted": total_services,
            "totalWorkMinutes": total_minutes,
            "averageServiceDuration": self._overall_average(user, start, end),
            "totalRevenue": round(sum(t["totalRevenue"] for t in technicians), 2),
        }

        return {
            "startDate": start,
            "endDate": end,
            "technicians": technicians,
            "summary": summary,
        }

    def _overall_average(self, user: User, start: datetime, end: datetime) -> float:
        average = (
            self.db.query(func.avg(ServiceRecord.duration))
            .filter(self._scope(ServiceRecord, user), ServiceRecord.date >= start, ServiceRecord.date <= end)
            .scalar()
        )
        return round(float(average or 0), 1)

    @staticmethod
    def _completion_rate(row: dict) -> float:
        if not row["appointmentsScheduled"]:
            return 0.0
        return round(row["appointmentsCompleted"] * 100.0 / row["appointmentsScheduled"], 1)

    def ranking(self, user: User, start: datetime, end: datetime, sort_by: str = "revenue") -> list[dict]:
        """Technicians ordered best first by revenue, services or completion rate"""
        if sort_by not in RANKING_KEYS:
            raise HTTPException(status_code=400, detail=f"Invalid sortBy: {sort_by}")

        technicians = self.technician_metrics(user, start, end)["technicians"]
        for row in technicians:
            row["completionRate"] = self._completion_rate(row)

        key = RANKING_KEYS[sort_by]
        ranked = sorted(technicians, key=lambda t: (-t[key], t["technicianId"]))
        for position, row in enumerate(ranked, start=1):
            row["position"] = position
        return ranked

    def comparison(self, user: User, technician_ids: list[int], start: datetime, end: datetime) -> list[dict]:
        """Side by side figures for the requested technicians, zeroed when idle"""
        if user.role != "admin" and any(t != user.id for t in technician_ids):
            raise HTTPException(status_code=403, detail="Only admins can compare other technicians")

        names = dict(
            self.db.query(User.id, User.name)
            .filter(User.id.in_(technician_ids), User.partner_id == user.partner_id)
            .all()
        )
        missing = [t for t in technician_ids if t not in names]
        if missing:
            raise HTTPException(status_code=404, detail=f"Technician {missing[0]} not found")

        found = {t["technicianId"]: t for t in self.technician_metrics(user, start, end)["technicians"]}

        compared = []
        for technician_id in technician_ids:
            row = found.get(technician_id) or {
                "technicianId": technician_id,
                "technicianName": names.get(technician_id),
                **EMPTY_ROW,
            }
            row["completionRate"] = self._completion_rate(row)
            row["totalWorkHours"] = round(row["totalWorkMinutes"] / 60, 1)
            compared.append(row)
        return compared
