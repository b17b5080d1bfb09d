from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ConfigDict, Field

from config import TEMPLATES_DIR
from models.sessions import ConsoleSession
from routers.deps import get_api_client, require_admin
from services.api_client import TransportApiClient
from services.errors import ConsoleError
from services.opt_outs import (
    available_fee_structures,
    delete_student_opt_outs,
    group_opt_outs,
    save_opt_outs,
)

router = APIRouter(tags=["Opt-Out Slabs"], dependencies=[Depends(require_admin)])
templates = Jinja2Templates(directory=TEMPLATES_DIR)


class OptOutSave(BaseModel):
    student_id: str = Field(alias="studentId")
    fee_structure_ids: List[str] = Field(default_factory=list, alias="feeStructureIds")
    replace: bool = False

    model_config = ConfigDict(populate_by_name=True)


@router.get("/fees/opt-outs")
def opt_outs_page(
    request: Request,
    session: ConsoleSession = Depends(require_admin),
    client: TransportApiClient = Depends(get_api_client),
):
    groups, students, fee_structures, error = [], [], [], None
    try:
        classes = client.list_classes()
        groups = group_opt_outs(client.list_opt_outs(), classes)
        students = client.list_students()
        fee_structures = client.list_fee_structures()
    except ConsoleError as e:
        error = e.message

    return templates.TemplateResponse(request, "opt_outs.html", {
        "session": session,
        "groups": groups,
        "students": students,
        "fee_structures": fee_structures,
        "error": error,
    })


@router.get("/api/v1/opt-outs")
def list_opt_outs(client: TransportApiClient = Depends(get_api_client)):
    return group_opt_outs(client.list_opt_outs(), client.list_classes())


@router.get("/api/v1/opt-outs/available/{student_id}")
def available_slabs(student_id: str, client: TransportApiClient = Depends(get_api_client)):
    structures = available_fee_structures(client.list_fee_structures(), client.list_opt_outs(), student_id)
    return [fs.model_dump(by_alias=True) for fs in structures]


@router.post("/api/v1/opt-outs")
def save_student_opt_outs(data: OptOutSave, client: TransportApiClient = Depends(get_api_client)):
    existing = client.list_opt_outs() if data.replace else []
    count = save_opt_outs(client, data.student_id, data.fee_structure_ids, existing, replace=data.replace)
    return {"message": "Opt-out slabs updated" if data.replace else "Opt-out slabs saved", "count": count}


@router.delete("/api/v1/opt-outs/student/{student_id}")
def delete_opt_outs(student_id: str, client: TransportApiClient = Depends(get_api_client)):
    count = delete_student_opt_outs(client, student_id, client.list_opt_outs())
    return {"message": "Deleted", "count": count}
