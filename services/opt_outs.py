"""
Slab opt-outs: a (student, fee structure) pair exempt from billing.

Once recorded upstream the slab no longer shows up in the student's dues.
"""
import logging
from typing import List, Optional

from schemas.fees import FeeStructure, OptOutSlab
from services.api_client import TransportApiClient
from services.errors import ValidationError

logger = logging.getLogger(__name__)


def group_opt_outs(opt_outs: List[OptOutSlab], classes: List[dict]) -> List[dict]:
    class_names = {str(c.get("id")): c.get("name") for c in classes}
    grouped = {}
    for o in opt_outs:
        entry = grouped.get(o.student_id)
        if entry is None:
            student = o.student or {}
            entry = grouped[o.student_id] = {
                "student_id": o.student_id,
                "student": student,
                "class_name": class_names.get(str(student.get("classId"))) or "N/A",
                "slabs": [],
                "fee_structure_ids": [],
            }
        slab = (o.fee_structure or {}).get("slab")
        if slab:
            entry["slabs"].append(slab)
            entry["fee_structure_ids"].append(o.fee_structure_id)
    return list(grouped.values())


def student_opt_outs(opt_outs: List[OptOutSlab], student_id: str) -> List[OptOutSlab]:
    return [o for o in opt_outs if o.student_id == str(student_id)]


def available_fee_structures(fee_structures: List[FeeStructure], opt_outs: List[OptOutSlab],
                             student_id: str) -> List[FeeStructure]:
    opted_out = {o.fee_structure_id for o in student_opt_outs(opt_outs, student_id)}
    return [fs for fs in fee_structures if fs.id not in opted_out]


def save_opt_outs(client: TransportApiClient, student_id: Optional[str], fee_structure_ids: List[str],
                  opt_outs: List[OptOutSlab], replace: bool = False) -> int:
    """
    Record opt-outs for one student. With ``replace`` the student's current
    opt-outs are removed first (edit mode). Returns the number created.
    """
    if not student_id:
        raise ValidationError("Select a student")

    ids = []
    for fs_id in fee_structure_ids:
        if fs_id and str(fs_id) not in ids:
            ids.append(str(fs_id))
    if not ids:
        raise ValidationError("Add at least one slab")

    if replace:
        delete_student_opt_outs(client, student_id, opt_outs)

    for fs_id in ids:
        client.create_opt_out(str(student_id), fs_id)
    logger.info("Saved %d opt-out(s) for student %s", len(ids), student_id)
    return len(ids)


def delete_student_opt_outs(client: TransportApiClient, student_id: str, opt_outs: List[OptOutSlab]) -> int:
    existing = student_opt_outs(opt_outs, student_id)
    for o in existing:
        client.delete_opt_out(o.id)
    return len(existing)
