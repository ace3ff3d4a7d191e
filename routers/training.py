"""
Training APIs: categories and materials.
Published materials are visible to everyone; drafts only to admins.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User, TrainingCategory, TrainingMaterial
from auth.dependencies import get_db_session, get_current_user, require_admin, is_admin
from services.training_service import TrainingService
from services.audit_service import AuditService
from core.serializers import training_category_to_dict, training_material_to_dict


router = APIRouter(prefix="/api/training", tags=["training"])


# ==================== Request models ====================

class CategoryCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class CategoryUpdate(CategoryCreate):
    pass


class MaterialCreate(BaseModel):
    title: Optional[str] = None
    categoryId: Optional[str] = None
    content: Optional[str] = None
    fileUrl: Optional[str] = None
    isPublished: bool = False


class MaterialUpdate(BaseModel):
    title: Optional[str] = None
    categoryId: Optional[str] = None
    content: Optional[str] = None
    fileUrl: Optional[str] = None
    isPublished: Optional[bool] = None


MATERIAL_FIELD_MAP = {
    "title": "title",
    "categoryId": "category_id",
    "content": "content",
    "fileUrl": "file_url",
    "isPublished": "is_published",
}


def _get_category_or_404(db: Session, category_id: str) -> TrainingCategory:
    category = TrainingService.get_category(db, category_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


def _get_visible_material(db: Session, material_id: str, user: User) -> TrainingMaterial:
    material = TrainingService.get_material(db, material_id)
    if not material or (not material.is_published and not is_admin(user)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Training material not found")
    return material


# ==================== Categories ====================

@router.get("/categories")
async def list_categories(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return [training_category_to_dict(c) for c in TrainingService.list_categories(db)]


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    try:
        category = TrainingService.create_category(db, name=data.name, description=data.description)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="training_category_create", user_id=current_user.id,
        resource_type="training_category", resource_id=category.id
    )
    return training_category_to_dict(category)


@router.put("/categories/{category_id}")
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    category = _get_category_or_404(db, category_id)
    updates = data.model_dump(exclude_unset=True)
    try:
        category = TrainingService.update_category(db, category, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="training_category_update", user_id=current_user.id,
        resource_type="training_category", resource_id=category.id
    )
    return training_category_to_dict(category)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Delete a category together with its materials."""
    category = _get_category_or_404(db, category_id)
    TrainingService.delete_category(db, category)
    AuditService.log_from_request(
        db=db, request=request, action="training_category_delete", user_id=current_user.id,
        resource_type="training_category", resource_id=category_id
    )


# ==================== Materials ====================

@router.get("/stats")
async def training_stats(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    return TrainingService.get_stats(db)


@router.get("/materials")
async def list_materials(
    category_id: Optional[str] = Query(None, alias="categoryId"),
    search: Optional[str] = Query(None),
    include_drafts: bool = Query(False, alias="includeDrafts"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Published materials. Admins may pass includeDrafts=true."""
    published_only = not (include_drafts and is_admin(current_user))
    materials = TrainingService.list_materials(
        db, published_only=published_only, category_id=category_id, search=search
    )
    return [training_material_to_dict(m) for m in materials]


@router.get("/materials/{material_id}")
async def get_material(
    material_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return training_material_to_dict(_get_visible_material(db, material_id, current_user))


@router.post("/materials", status_code=status.HTTP_201_CREATED)
async def create_material(
    data: MaterialCreate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    try:
        material = TrainingService.create_material(
            db,
            title=data.title,
            category_id=data.categoryId,
            created_by=current_user.id,
            content=data.content,
            file_url=data.fileUrl,
            is_published=data.isPublished,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="training_material_create", user_id=current_user.id,
        resource_type="training_material", resource_id=material.id
    )
    return training_material_to_dict(material)


@router.put("/materials/{material_id}")
async def update_material(
    material_id: str,
    data: MaterialUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    material = _get_visible_material(db, material_id, current_user)
    updates = {MATERIAL_FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
    try:
        material = TrainingService.update_material(db, material, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="training_material_update", user_id=current_user.id,
        resource_type="training_material", resource_id=material.id, details={"fields": sorted(updates.keys())}
    )
    return training_material_to_dict(material)


@router.post("/materials/{material_id}/publish")
async def publish_material(
    material_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    material = TrainingService.set_published(db, _get_visible_material(db, material_id, current_user), True)
    AuditService.log_from_request(
        db=db, request=request, action="training_material_publish", user_id=current_user.id,
        resource_type="training_material", resource_id=material.id
    )
    return training_material_to_dict(material)


@router.post("/materials/{material_id}/unpublish")
async def unpublish_material(
    material_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    material = TrainingService.set_published(db, _get_visible_material(db, material_id, current_user), False)
    AuditService.log_from_request(
        db=db, request=request, action="training_material_unpublish", user_id=current_user.id,
        resource_type="training_material", resource_id=material.id
    )
    return training_material_to_dict(material)


@router.delete("/materials/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_material(
    material_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    material = _get_visible_material(db, material_id, current_user)
    TrainingService.delete_material(db, material)
    AuditService.log_from_request(
        db=db, request=request, action="training_material_delete", user_id=current_user.id,
        resource_type="training_material", resource_id=material_id
    )
