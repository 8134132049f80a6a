"""
CommandRegistry - Explicit command registration pattern

Bounded Context: Command registration and validation
Responsibilities:
  - Register commands with handlers and their required payload fields
  - Validate command existence and payload shape before execution
  - Provide introspection (available_commands, get_help)

Design:
  Every command the counter service accepts is registered explicitly, so
  the set of available commands is known at startup and listed on error.

Threading: Thread-safe (uses lock for write operations)
"""

from typing import Any, Callable, Dict, Iterable, Optional, Set, Tuple
import threading


CommandHandler = Callable[[Dict[str, Any]], Any]


class CommandNotAvailableError(Exception):
    """Raised when attempting to execute an unregistered command"""
    pass


class CommandPayloadError(ValueError):
    """Raised when a command payload is missing required fields"""

    def __init__(self, command: str, missing: Iterable[str]):
        self.command = command
        self.missing = tuple(sorted(missing))
        super().__init__(
            f"Command '{command}' missing required field(s): {', '.join(self.missing)}"
        )


class CommandRegistry:
    """
    Registry for MQTT commands with explicit registration.

    Handlers always receive the full command payload dict (possibly empty).

    Example:
        registry = CommandRegistry()
        registry.register('pause', service.pause, "Pause counting")
        registry.register(
            'set_direction', service.set_direction,
            "Set the counted direction",
            required_fields=('direction',),
        )

        try:
            registry.execute('set_direction', {'direction': 'reverse'})
        except CommandNotAvailableError as e:
            print(f"Command not available: {e}")
    """

    def __init__(self):
        self._commands: Dict[str, CommandHandler] = {}
        self._descriptions: Dict[str, str] = {}
        self._required: Dict[str, Tuple[str, ...]] = {}
        self._lock = threading.Lock()

    def register(
        self,
        command: str,
        handler: CommandHandler,
        description: str,
        required_fields: Iterable[str] = (),
    ) -> None:
        """
        Register a command with its handler function.

        Args:
            command: Command name (lowercase, no spaces)
            handler: Callable taking the command payload dict
            description: Human-readable description for help text
            required_fields: Payload keys that must be present

        Raises:
            ValueError: If command name is invalid or already registered
        """
        if not command or command != command.strip().lower() or ' ' in command:
            raise ValueError(f"Invalid command name: {command!r}")

        with self._lock:
            if command in self._commands:
                raise ValueError(f"Command '{command}' already registered")

            self._commands[command] = handler
            self._descriptions[command] = description
            self._required[command] = tuple(required_fields)

    def execute(self, command: str, command_data: Optional[Dict[str, Any]] = None) -> Any:
        """
        Execute a registered command.

        Returns:
            Whatever the handler returns

        Raises:
            CommandNotAvailableError: If command not registered
            CommandPayloadError: If required payload fields are missing
        """
        if command not in self._commands:
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {', '.join(sorted(self.available_commands))}"
            )

        payload = dict(command_data or {})
        missing = [field for field in self._required[command] if field not in payload]
        if missing:
            raise CommandPayloadError(command, missing)

        return self._commands[command](payload)

    def is_available(self, command: str) -> bool:
        return command in self._commands

    def required_fields(self, command: str) -> Tuple[str, ...]:
        if command not in self._required:
            raise CommandNotAvailableError(f"Command '{command}' not available")
        return self._required[command]

    @property
    def available_commands(self) -> Set[str]:
        """Snapshot of registered command names."""
        return set(self._commands.keys())

    def get_help(self) -> Dict[str, str]:
        return dict(self._descriptions)

    def count(self) -> int:
        return len(self._commands)
