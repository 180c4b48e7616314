from ..schemas.command import CommandAction

ACTION_CHOICES = "|".join(f'"{action.value}"' for action in CommandAction)

PROMPT_TEMPLATE = """Parse this command into JSON. Command: "{command}"

Return ONLY valid JSON (no other text) in exactly this format:
{{"action":{actions},"params":{{"role_name":"name or null","permission_name":"name or null"}}}}

Examples:
- "Create admin role" → {{"action":"create_role","params":{{"role_name":"admin","permission_name":null}}}}
- "Create edit permission" → {{"action":"create_permission","params":{{"role_name":null,"permission_name":"edit"}}}}
- "Give the editor role the publish permission" → {{"action":"attach_permission","params":{{"role_name":"editor","permission_name":"publish"}}}}
- "Remove publish from editor" → {{"action":"detach_permission","params":{{"role_name":"editor","permission_name":"publish"}}}}
- Anything else → {{"action":"unknown","params":{{"role_name":null,"permission_name":null}}}}"""


def build_prompt(command: str) -> str:
    return PROMPT_TEMPLATE.format(command=command, actions=ACTION_CHOICES)
