"""Dewey category API routes."""
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from recipebook.core.category_tree import CategoryTree
from recipebook.core.deps import get_category_repository, to_http_exception
from recipebook.core.exceptions import ClassificationError
from recipebook.models.dewey_category import DeweyCategory
from recipebook.schemas.dewey_category import (
    BrokenLink,
    DeweyCategoryCreate,
    DeweyCategoryDetail,
    DeweyCategoryResponse,
    DeweyCategoryTreeNode,
    DeweyCategoryUpdate,
    DeweyImportResult,
    DeweyIntegrityReport,
    LevelMismatch,
    NextSequenceResponse,
)
from recipebook.services.category_repository import CategoryRepository

router = APIRouter()


def build_tree(tree: CategoryTree, include_inactive: bool = False) -> List[DeweyCategoryTreeNode]:
    """Build hierarchical tree structure from the category index."""
    def to_node(category: DeweyCategory) -> DeweyCategoryTreeNode:
        children = tree.children_of(category.dewey_code, include_inactive)
        return DeweyCategoryTreeNode(
            category_id=category.category_id,
            dewey_code=category.dewey_code,
            name=category.name,
            level=category.level,
            parent_code=category.parent_code,
            is_active=category.is_active,
            child_count=len(children),
            children=[to_node(child) for child in children],
        )

    return [to_node(root) for root in tree.roots(include_inactive)]


def category_detail(tree: CategoryTree, category: DeweyCategory) -> DeweyCategoryDetail:
    path = tree.ancestor_path(category.dewey_code)
    ancestors = [c for c in path if c.dewey_code != category.dewey_code]
    return DeweyCategoryDetail(
        **DeweyCategoryResponse.model_validate(category).model_dump(),
        has_children=tree.has_children(category.dewey_code, include_inactive=True),
        child_count=tree.child_count(category.dewey_code, include_inactive=True),
        ancestors=[DeweyCategoryResponse.model_validate(a) for a in ancestors],
        full_path=" > ".join(c.name for c in path),
    )


@router.get("/", response_model=List[DeweyCategoryResponse])
def list_categories(
    include_inactive: bool = Query(True, description="Include inactive categories"),
    repo: CategoryRepository = Depends(get_category_repository),
):
    """List all categories (flat, ordered by code)."""
    return repo.list_all(include_inactive)


@router.get("/tree", response_model=List[DeweyCategoryTreeNode])
def get_category_tree(
    include_inactive: bool = Query(False, description="Include inactive categories"),
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Get the nested category tree."""
    return build_tree(repo.tree(), include_inactive)


@router.get("/roots", response_model=List[DeweyCategoryResponse])
def list_root_categories(
    include_inactive: bool = Query(False, description="Include inactive categories"),
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Top-level categories (no parent link), ordered by code as text."""
    return repo.tree().roots(include_inactive)


@router.get("/integrity", response_model=DeweyIntegrityReport)
def check_integrity(repo: CategoryRepository = Depends(get_category_repository)):
    """Report broken parent links and stored levels that disagree with the code."""
    tree = repo.tree()
    return DeweyIntegrityReport(
        category_count=len(tree),
        broken_links=[
            BrokenLink(dewey_code=code, missing_parent_code=missing)
            for code, missing in tree.broken_links()
        ],
        level_mismatches=[
            LevelMismatch(dewey_code=code, stored_level=stored, expected_level=expected)
            for code, stored, expected in tree.level_mismatches()
        ],
    )


@router.get("/next-sequence/{base_code}", response_model=NextSequenceResponse)
def get_next_sequence(
    base_code: str,
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Next free recipe code under a base code (e.g. 411.21 -> 411.21.003)."""
    try:
        return NextSequenceResponse(base_code=base_code, next_sequence=repo.next_sequence(base_code))
    except ClassificationError as e:
        raise to_http_exception(e)


@router.get("/code/{dewey_code}", response_model=DeweyCategoryDetail)
def get_category_by_code(
    dewey_code: str,
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Get a category with its ancestor chain."""
    tree = repo.tree()
    category = tree.get(dewey_code)
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Dewey category not found"
        )
    return category_detail(tree, category)


@router.get("/code/{dewey_code}/children", response_model=List[DeweyCategoryResponse])
def list_child_categories(
    dewey_code: str,
    include_inactive: bool = Query(False, description="Include inactive categories"),
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Direct children of a category."""
    tree = repo.tree()
    if dewey_code not in tree:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Dewey category not found"
        )
    return tree.children_of(dewey_code, include_inactive)


@router.post("/", response_model=DeweyCategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category_data: DeweyCategoryCreate,
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Create new Dewey category."""
    try:
        return repo.create(category_data)
    except ClassificationError as e:
        raise to_http_exception(e)


@router.post("/import", response_model=DeweyImportResult)
async def import_categories(
    file: UploadFile = File(...),
    repo: CategoryRepository = Depends(get_category_repository),
):
    """
    Bulk import categories from a text/CSV file.

    Each line holds comma-separated "code name" fields, e.g.
    ``000 Poultry, 000.0 Chicken``. Existing codes are skipped and bad
    fields are reported without stopping the import.
    """
    content = await file.read()
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File must be UTF-8 encoded text"
        )
    return repo.import_text(text, file_name=file.filename)


@router.put("/{category_id}", response_model=DeweyCategoryResponse)
def update_category(
    category_id: int,
    category_data: DeweyCategoryUpdate,
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Update Dewey category."""
    try:
        return repo.update(category_id, category_data)
    except ClassificationError as e:
        raise to_http_exception(e)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    repo: CategoryRepository = Depends(get_category_repository),
):
    """
    Delete a Dewey category.

    Blocked (409) while other categories name it as their parent.
    """
    try:
        repo.delete(category_id)
    except ClassificationError as e:
        raise to_http_exception(e)
    return None
