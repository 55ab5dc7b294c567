from enum import Enum

class TaskColor(Enum):
    YELLOW = "[yellow]"
    BLUE = "[blue]"
    GREEN = "[green]"
    RED = "[red]"
    RESET = "[/]"

    def __str__(self):
        return self.value
