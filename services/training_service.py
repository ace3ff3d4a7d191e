"""
Training categories and materials service.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_, func

from database.models import TrainingCategory, TrainingMaterial
from core.validators import require_text, update_text, clean_optional, require_value
from core.logger import logger


class TrainingService:
    """CRUD for training_categories and training_materials."""

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    @staticmethod
    def list_categories(db: Session) -> List[TrainingCategory]:
        return db.query(TrainingCategory).order_by(TrainingCategory.name.asc()).all()

    @staticmethod
    def get_category(db: Session, category_id: str) -> Optional[TrainingCategory]:
        return db.query(TrainingCategory).filter(TrainingCategory.id == category_id).first()

    @staticmethod
    def _check_category_name(db: Session, name: str, exclude_id: Optional[str] = None) -> None:
        query = db.query(TrainingCategory).filter(func.lower(TrainingCategory.name) == name.lower())
        if exclude_id:
            query = query.filter(TrainingCategory.id != exclude_id)
        if query.first():
            raise ValueError("A category with this name already exists")

    @staticmethod
    def create_category(db: Session, name: Optional[str], description: Optional[str] = None) -> TrainingCategory:
        name = require_text(name, "Category name")
        TrainingService._check_category_name(db, name)
        category = TrainingCategory(name=name, description=clean_optional(description))
        db.add(category)
        db.commit()
        db.refresh(category)
        logger.info(f"Created training category '{name}'")
        return category

    @staticmethod
    def update_category(db: Session, category: TrainingCategory, updates: Dict[str, Any]) -> TrainingCategory:
        if "name" in updates and updates["name"] is not None:
            name = update_text(updates["name"], "Category name")
            TrainingService._check_category_name(db, name, exclude_id=category.id)
            category.name = name
        if "description" in updates:
            category.description = clean_optional(updates["description"])
        db.commit()
        db.refresh(category)
        logger.info(f"Updated training category {category.id}")
        return category

    @staticmethod
    def delete_category(db: Session, category: TrainingCategory) -> None:
        """Deletes the category and its materials."""
        category_id = category.id
        db.delete(category)
        db.commit()
        logger.info(f"Deleted training category {category_id}")

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------

    @staticmethod
    def list_materials(
        db: Session,
        published_only: bool = True,
        category_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[TrainingMaterial]:
        query = db.query(TrainingMaterial)
        if published_only:
            query = query.filter(TrainingMaterial.is_published == True)  # noqa: E712
        if category_id:
            query = query.filter(TrainingMaterial.category_id == category_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(TrainingMaterial.title.ilike(pattern), TrainingMaterial.content.ilike(pattern)))
        return query.order_by(TrainingMaterial.created_at.desc()).all()

    @staticmethod
    def get_material(db: Session, material_id: str) -> Optional[TrainingMaterial]:
        return db.query(TrainingMaterial).filter(TrainingMaterial.id == material_id).first()

    @staticmethod
    def create_material(
        db: Session,
        title: Optional[str],
        category_id: Optional[str],
        created_by: Optional[str] = None,
        content: Optional[str] = None,
        file_url: Optional[str] = None,
        is_published: bool = False,
    ) -> TrainingMaterial:
        """
        Raises:
            ValueError: missing title or category, unknown category
        """
        title = require_text(title, "Material title")
        require_value(category_id, "Category")
        if not TrainingService.get_category(db, category_id):
            raise ValueError("Category not found")
        material = TrainingMaterial(
            title=title,
            category_id=category_id,
            created_by=created_by,
            content=clean_optional(content),
            file_url=clean_optional(file_url),
            is_published=is_published,
        )
        db.add(material)
        db.commit()
        db.refresh(material)
        logger.info(f"Created training material {material.id} '{title}'")
        return material

    @staticmethod
    def update_material(db: Session, material: TrainingMaterial, updates: Dict[str, Any]) -> TrainingMaterial:
        if "title" in updates and updates["title"] is not None:
            material.title = update_text(updates["title"], "Material title")
        if "category_id" in updates and updates["category_id"] is not None:
            if not TrainingService.get_category(db, updates["category_id"]):
                raise ValueError("Category not found")
            material.category_id = updates["category_id"]
        for field in ("content", "file_url"):
            if field in updates:
                setattr(material, field, clean_optional(updates[field]))
        if "is_published" in updates and updates["is_published"] is not None:
            material.is_published = updates["is_published"]
        db.commit()
        db.refresh(material)
        logger.info(f"Updated training material {material.id}")
        return material

    @staticmethod
    def set_published(db: Session, material: TrainingMaterial, published: bool) -> TrainingMaterial:
        material.is_published = published
        db.commit()
        db.refresh(material)
        logger.info(f"Training material {material.id} {'published' if published else 'unpublished'}")
        return material

    @staticmethod
    def delete_material(db: Session, material: TrainingMaterial) -> None:
        material_id = material.id
        db.delete(material)
        db.commit()
        logger.info(f"Deleted training material {material_id}")

    @staticmethod
    def get_stats(db: Session) -> Dict[str, int]:
        total = db.query(func.count(TrainingMaterial.id)).scalar() or 0
        published = db.query(func.count(TrainingMaterial.id)).filter(
            TrainingMaterial.is_published == True  # noqa: E712
        ).scalar() or 0
        return {
            "total": total,
            "published": published,
            "draft": total - published,
            "categories": db.query(func.count(TrainingCategory.id)).scalar() or 0,
        }
