"""Back-office routes: circulation (staff) and member/staff management (admin)."""

from fastapi import APIRouter, Depends, Query, status

from unilib.api.middleware.auth import get_store, require_admin, require_staff
from unilib.api.schemas import IssueCreateRequest, RoleAssignRequest
from unilib.domain.records import BookIssue, IssueEntry, IssueStatus, Profile, StaffEntry, UserRole
from unilib.ports.auth import Principal
from unilib.ports.store import StorePort
from unilib.services.admin import AdminService
from unilib.services.circulation import CirculationReport, CirculationService

router = APIRouter(prefix="/admin", tags=["Admin"])


# ── Circulation (staff) ────────────────────────────


@router.get("/issues", response_model=list[IssueEntry])
async def list_issues(
    status_filter: IssueStatus | None = Query(None, alias="status"),
    _staff: Principal = Depends(require_staff),
    store: StorePort = Depends(get_store),
) -> list[IssueEntry]:
    return await CirculationService(store).list_issues(status_filter)


@router.post("/issues", response_model=BookIssue, status_code=status.HTTP_201_CREATED)
async def issue_book(
    data: IssueCreateRequest,
    staff: Principal = Depends(require_staff),
    store: StorePort = Depends(get_store),
) -> BookIssue:
    return await CirculationService(store).issue_book(
        issued_by=staff.id,
        book_id=data.book_id,
        user_id=data.user_id,
        due_date=data.due_date,
        notes=data.notes,
    )


@router.post("/issues/{issue_id}/return", response_model=BookIssue)
async def return_book(
    issue_id: str,
    _staff: Principal = Depends(require_staff),
    store: StorePort = Depends(get_store),
) -> BookIssue:
    return await CirculationService(store).return_book(issue_id)


@router.get("/reports", response_model=CirculationReport)
async def reports(
    _staff: Principal = Depends(require_staff),
    store: StorePort = Depends(get_store),
) -> CirculationReport:
    """Currently issued, overdue and most borrowed books."""
    return await CirculationService(store).report()


# ── Members & staff (admin) ────────────────────────


@router.get("/members", response_model=list[Profile])
async def list_members(
    _admin: Principal = Depends(require_admin),
    store: StorePort = Depends(get_store),
) -> list[Profile]:
    return await AdminService(store).list_members()


@router.get("/staff", response_model=list[StaffEntry])
async def list_staff(
    _admin: Principal = Depends(require_admin),
    store: StorePort = Depends(get_store),
) -> list[StaffEntry]:
    return await AdminService(store).list_staff()


@router.post("/staff", response_model=UserRole, status_code=status.HTTP_201_CREATED)
async def assign_role(
    data: RoleAssignRequest,
    _admin: Principal = Depends(require_admin),
    store: StorePort = Depends(get_store),
) -> UserRole:
    return await AdminService(store).assign_role(data.user_id, data.role)


@router.delete("/staff/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_role(
    role_id: str,
    _admin: Principal = Depends(require_admin),
    store: StorePort = Depends(get_store),
) -> None:
    await AdminService(store).remove_role(role_id)
