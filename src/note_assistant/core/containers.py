from dependency_injector import containers, providers


class Container(containers.DeclarativeContainer):
    """DI container for core components."""

    config = providers.Configuration()

    @staticmethod
    def load_defaults(config):
        """Populate runtime tuning values (environment overrides first)."""
        from note_assistant.process.environment import default_path_dirs

        config.request_timeout.from_env("NOTE_ASSISTANT_TIMEOUT", as_=float, default=300.0)
        config.status_interval.from_env(
            "NOTE_ASSISTANT_STATUS_INTERVAL", as_=float, default=0.0
        )
        config.liveness_timeout.from_value(5.0)
        config.kill_grace.from_value(1.0)
        config.extra_path_dirs.from_value(default_path_dirs())
        config.working_dir.from_value(None)
        config.settings_path.from_value(None)

    @staticmethod
    def _create_settings_service(settings_path=None):
        from .services.settings_service import SettingsService

        return SettingsService(path=settings_path)

    @staticmethod
    def _create_liveness_checker(timeout=None):
        from note_assistant.process.liveness import LivenessChecker

        return LivenessChecker(timeout=timeout or 5.0)

    @staticmethod
    def _create_path_resolver(liveness_checker, **kwargs):
        from note_assistant.process.discovery import PathResolver

        return PathResolver(liveness_checker=liveness_checker)

    @staticmethod
    def _create_executable_cache(resolver, settings_service, **kwargs):
        from note_assistant.process.cache import ExecutableCache

        return ExecutableCache(resolver=resolver, settings_loader=settings_service.load)

    @staticmethod
    def _create_event_emitter():
        from .domain.events import EventEmitter

        return EventEmitter()

    @staticmethod
    def _create_process_runner(
        default_timeout=None, kill_grace=None, status_interval=None, event_emitter=None
    ):
        from note_assistant.process.runner import ProcessRunner

        return ProcessRunner(
            default_timeout=default_timeout or 300.0,
            kill_grace=kill_grace or 1.0,
            status_interval=status_interval or None,
            event_emitter=event_emitter,
        )

    @staticmethod
    def _create_assistant_service(
        runner, executable_cache, settings_service, extra_path_dirs=None, working_dir=None
    ):
        from .services.assistant_service import AssistantService

        return AssistantService(
            runner=runner,
            executable_cache=executable_cache,
            settings_service=settings_service,
            extra_path_dirs=extra_path_dirs or (),
            working_dir=working_dir,
        )

    settings_service = providers.Singleton(
        _create_settings_service, settings_path=config.settings_path
    )
    event_emitter = providers.Singleton(_create_event_emitter)

    liveness_checker = providers.Factory(
        _create_liveness_checker, timeout=config.liveness_timeout
    )
    path_resolver = providers.Factory(
        _create_path_resolver, liveness_checker=liveness_checker
    )
    executable_cache = providers.Singleton(
        _create_executable_cache,
        resolver=path_resolver,
        settings_service=settings_service,
    )
    process_runner = providers.Factory(
        _create_process_runner,
        default_timeout=config.request_timeout,
        kill_grace=config.kill_grace,
        status_interval=config.status_interval,
        event_emitter=event_emitter,
    )
    assistant_service = providers.Singleton(
        _create_assistant_service,
        runner=process_runner,
        executable_cache=executable_cache,
        settings_service=settings_service,
        extra_path_dirs=config.extra_path_dirs,
        working_dir=config.working_dir,
    )
