"""用户路由"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ...database import get_db
from ...models import User
from ...schemas import UserResponse, UserUpdate, UserCreate, UserAdminUpdate, PasswordChange
from ...api.deps import get_current_user, require_admin
from ...modules import accounts
from ...modules.accounts import AccountError
from ...utils.security import hash_password, verify_password

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """获取当前用户信息"""
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    user_in: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """更新当前用户信息"""
    try:
        return await accounts.update_profile(
            db,
            current_user,
            username=user_in.username,
            full_name=user_in.full_name,
            email=user_in.email,
            avatar_url=user_in.avatar_url,
        )
    except AccountError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/me/password")
async def change_password(
    data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """修改密码"""
    if not verify_password(data.old_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Senha atual incorreta"
        )
    
    current_user.password_hash = hash_password(data.new_password)
    await db.flush()
    
    return {"message": "Senha alterada com sucesso"}


# ==================== 管理员 ====================

@router.get("", response_model=List[UserResponse])
async def list_users(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """用户列表，管理员在前"""
    return await accounts.list_users(db)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: UserCreate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """创建用户"""
    try:
        return await accounts.create_new_user(
            db,
            username=user_in.username,
            password=user_in.password,
            full_name=user_in.full_name,
            email=user_in.email,
        )
    except AccountError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_in: UserAdminUpdate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """修改用户名，可选重置密码"""
    try:
        return await accounts.update_user_info(db, user_id, user_in.username, user_in.password)
    except AccountError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """删除用户（管理员不可删除）"""
    try:
        await accounts.delete_user(db, user_id)
    except AccountError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
