from shellkeep.tools.bash_tool import BashTool

__all__ = ["BashTool"]
