"""Dependency Injection Container.

This module provides a centralized DI container using dependency-injector.
Lifecycles:
- Singleton: One instance for the entire process (clients, configs)
- Factory: New instance every time (services)

Usage:
    # In Celery tasks and the CLI
    from reelsmith.core.container import get_container

    orchestrator = get_container().services.pipeline_orchestrator()

    # In tests
    with container.infrastructure.db_session_factory.override(mock_factory):
        ...
"""

from dependency_injector import containers, providers

from reelsmith.core.config import Config, get_config
from reelsmith.core.database import get_session_maker


class InfrastructureContainer(containers.DeclarativeContainer):
    """Infrastructure layer dependencies (database, external clients)."""

    global_config = providers.Dependency(instance_of=Config)

    # ============================================
    # Database
    # ============================================

    db_session_factory = providers.Singleton(get_session_maker)

    # ============================================
    # LLM Client
    # ============================================

    # Unified LLM client (LiteLLM-based, provider-agnostic)
    llm_client = providers.Singleton(
        "reelsmith.infrastructure.llm.LLMClient",
        api_key=global_config.provided.openrouter_api_key,
    )

    prompt_manager = providers.Singleton(
        "reelsmith.prompts.manager.PromptManager",
    )

    # ============================================
    # HTTP Client
    # ============================================

    http_client = providers.Singleton(
        "reelsmith.infrastructure.http_client.HTTPClient",
    )

    # ============================================
    # FFmpeg
    # ============================================

    ffmpeg_runner = providers.Singleton(
        "reelsmith.services.generator.ffmpeg.FFmpegRunner",
        ffmpeg_binary=global_config.provided.ffmpeg_binary,
        ffprobe_binary=global_config.provided.ffprobe_binary,
    )


class ConfigContainer(containers.DeclarativeContainer):
    """Configuration models container.

    Provides typed Pydantic config models for services.
    Configs are Singleton by default - loaded once and reused.
    """

    global_config = providers.Dependency(instance_of=Config)

    # Pipeline
    queue_config = providers.Singleton(
        "reelsmith.config.pipeline.QueueConfig",
    )

    script_quality_config = providers.Singleton(
        "reelsmith.config.pipeline.ScriptQualityConfig",
    )

    # Generation
    tts_config = providers.Singleton(
        "reelsmith.config.generation.TTSConfig",
    )

    image_generation_config = providers.Singleton(
        "reelsmith.config.generation.ImageGenerationConfig",
    )

    image_prompt_config = providers.Singleton(
        "reelsmith.config.generation.ImagePromptConfig",
    )

    # Render
    render_config = providers.Singleton(
        "reelsmith.config.render.RenderConfig",
    )

    karaoke_config = providers.Singleton(
        "reelsmith.config.subtitle.KaraokeConfig",
    )

    # Publishing
    schedule_config = providers.Singleton(
        "reelsmith.config.schedule.ScheduleConfig",
    )

    publish_config = providers.Singleton(
        "reelsmith.config.upload.PublishConfig",
        draft_mode=global_config.provided.publer_draft_mode,
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Service layer dependencies.

    Services are Factory providers; they receive infrastructure and
    configs via injection.
    """

    global_config = providers.Dependency(instance_of=Config)
    infrastructure = providers.DependenciesContainer()
    configs = providers.DependenciesContainer()

    # ============================================
    # Rotation
    # ============================================

    rotation_ledger = providers.Factory(
        "reelsmith.services.rotation.ledger.RotationLedger",
        db_session_factory=infrastructure.db_session_factory,
    )

    asset_selector = providers.Factory(
        "reelsmith.services.rotation.assets.AssetSelector",
        ledger=rotation_ledger,
        music_dir=global_config.provided.music_dir,
        overlays_dir=global_config.provided.overlays_dir,
        backgrounds_dir=global_config.provided.backgrounds_dir,
    )

    topic_rotator = providers.Factory(
        "reelsmith.services.rotation.topics.TopicRotator",
        db_session_factory=infrastructure.db_session_factory,
    )

    # ============================================
    # Script
    # ============================================

    script_generator = providers.Factory(
        "reelsmith.services.script.generator.ScriptGenerator",
        llm_client=infrastructure.llm_client,
        prompt_manager=infrastructure.prompt_manager,
        config=configs.script_quality_config,
        model=global_config.provided.llm_model_script,
    )

    script_validator = providers.Factory(
        "reelsmith.services.script.validator.ScriptValidator",
        llm_client=infrastructure.llm_client,
        prompt_manager=infrastructure.prompt_manager,
        model=global_config.provided.llm_model_validation,
    )

    script_quality_loop = providers.Factory(
        "reelsmith.services.script.quality_loop.ScriptQualityLoop",
        generator=script_generator,
        validator=script_validator,
        config=configs.script_quality_config,
    )

    image_prompt_writer = providers.Factory(
        "reelsmith.services.script.image_prompts.ImagePromptWriter",
        llm_client=infrastructure.llm_client,
        prompt_manager=infrastructure.prompt_manager,
        config=configs.image_prompt_config,
        model=global_config.provided.llm_model_image_prompts,
    )

    # ============================================
    # Media Generation
    # ============================================

    image_generator = providers.Factory(
        "reelsmith.services.generator.images.ImageGenerator",
        http_client=infrastructure.http_client,
        fal_key=global_config.provided.fal_key,
        config=configs.image_generation_config,
    )

    speech_synthesizer = providers.Singleton(
        "reelsmith.services.generator.tts.SpeechSynthesizer",
        api_key=global_config.provided.elevenlabs_api_key,
        voice_id=global_config.provided.elevenlabs_voice_id,
        config=configs.tts_config,
    )

    subtitle_builder = providers.Factory(
        "reelsmith.services.generator.karaoke.KaraokeSubtitleBuilder",
        config=configs.karaoke_config,
    )

    video_renderer = providers.Factory(
        "reelsmith.services.generator.render.VideoRenderer",
        runner=infrastructure.ffmpeg_runner,
        config=configs.render_config,
    )

    # ============================================
    # Pipeline
    # ============================================

    pipeline_steps = providers.Factory(
        "reelsmith.services.pipeline.steps.PipelineSteps",
        topic_rotator=topic_rotator,
        asset_selector=asset_selector,
        script_generator=script_generator,
        quality_loop=script_quality_loop,
        image_prompt_writer=image_prompt_writer,
        image_generator=image_generator,
        speech_synthesizer=speech_synthesizer,
        subtitle_builder=subtitle_builder,
        renderer=video_renderer,
        temp_dir=global_config.provided.temp_dir,
        output_dir=global_config.provided.output_dir,
    )

    retention = providers.Factory(
        "reelsmith.services.cleanup.RetentionService",
        db_session_factory=infrastructure.db_session_factory,
        max_completed=global_config.provided.max_completed_videos,
    )

    dispatcher = providers.Singleton(
        "reelsmith.workers.dispatch.CeleryDispatcher",
    )

    pipeline_orchestrator = providers.Factory(
        "reelsmith.services.pipeline.orchestrator.PipelineOrchestrator",
        db_session_factory=infrastructure.db_session_factory,
        steps=pipeline_steps,
        dispatcher=dispatcher,
        retention=retention,
        asset_selector=asset_selector,
        queue_config=configs.queue_config,
    )

    # ============================================
    # Publishing
    # ============================================

    publer_settings = providers.Factory(
        "reelsmith.services.uploader.credentials.PublerSettingsResolver",
        db_session_factory=infrastructure.db_session_factory,
        config=global_config,
    )

    slot_scheduler = providers.Factory(
        "reelsmith.services.uploader.scheduler.SlotScheduler",
        db_session_factory=infrastructure.db_session_factory,
        config=configs.schedule_config,
    )

    upload_processor = providers.Factory(
        "reelsmith.services.uploader.processor.UploadProcessor",
        db_session_factory=infrastructure.db_session_factory,
        credentials=publer_settings,
        config=configs.publish_config,
    )

    auto_uploader = providers.Factory(
        "reelsmith.services.uploader.auto_upload.AutoUploader",
        db_session_factory=infrastructure.db_session_factory,
        scheduler=slot_scheduler,
        processor=upload_processor,
        credentials=publer_settings,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Root application container.

    Composes all sub-containers and provides the main entry point.
    """

    # Uses get_config() to ensure same instance across the app
    config = providers.Singleton(get_config)

    infrastructure = providers.Container(
        InfrastructureContainer,
        global_config=config,
    )

    configs = providers.Container(
        ConfigContainer,
        global_config=config,
    )

    services = providers.Container(
        ServiceContainer,
        global_config=config,
        infrastructure=infrastructure,
        configs=configs,
    )


def create_container() -> ApplicationContainer:
    """Create and configure the application container."""
    return ApplicationContainer()


# Global container instance
container = create_container()


def get_container() -> ApplicationContainer:
    """Get the global container."""
    return container


__all__ = [
    "ApplicationContainer",
    "ConfigContainer",
    "InfrastructureContainer",
    "ServiceContainer",
    "container",
    "create_container",
    "get_container",
]
