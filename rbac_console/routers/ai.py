from fastapi import APIRouter, Depends

from ..commands.interpreter import CommandInterpreter
from ..dependencies import get_command_interpreter, get_current_principal
from ..schemas.command import CommandRequest, CommandResponse
from ..security.token_inspection import AuthContext

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/parse-command", response_model=CommandResponse)
async def parse_command(
    payload: CommandRequest,
    principal: AuthContext = Depends(get_current_principal),
    interpreter: CommandInterpreter = Depends(get_command_interpreter),
) -> CommandResponse:
    """Interpret a free-text command and apply it to roles and permissions."""
    return await interpreter.interpret(payload.command, principal)
