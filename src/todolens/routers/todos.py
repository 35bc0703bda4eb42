from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..repositories import Repository
from ..schemas import TodoOut

router = APIRouter(
    prefix="/api/v1",
    tags=["todos"],
)


def _get_repo(request: Request) -> Repository:
    """
    Dependency returning the process-wide store shared with the dispatcher.
    """
    return request.app.state.store


# PUBLIC_INTERFACE
@router.get(
    "/users/{user_id}/todos",
    response_model=List[TodoOut],
    summary="List User Todos",
    description="List the todos owned by a user, in the order they were accepted.",
)
def list_user_todos(user_id: str, repo: Repository = Depends(_get_repo)) -> List[TodoOut]:
    """
    List a user's todos.
    """
    return [TodoOut(**t) for t in repo.list(user_id)]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/spaces/{space_id}/todos",
    response_model=List[TodoOut],
    summary="List Space Todos",
    description="List the todos accepted in a space, in creation order.",
)
def list_space_todos(space_id: str, repo: Repository = Depends(_get_repo)) -> List[TodoOut]:
    """
    List a space's todos.
    """
    return [TodoOut(**t) for t in repo.list_space(space_id)]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/todos/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(todo_id: str, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Retrieve a single Todo item by its ID, whoever owns it.
    """
    item = repo.find(todo_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return TodoOut(**item)  # type: ignore[arg-type]
