"""Gradio web UI for the script wizard."""

import tempfile
import uuid
from typing import Optional

import gradio as gr
from loguru import logger

from .config import Config, resolve_api_key
from .errors import (
    ClicheFormatError,
    GatewayError,
    ScriptosaurError,
    WorkflowBusyError,
)
from .gateway import LLMGateway
from .models.state import STEP_ORDER, Step, Tool, WorkflowState
from .prompt_store import PromptStore
from .prompts import PromptKey
from .workflow import Workflow

# ---------------------------------------------------------------------------
# Process-wide context (the prompt store is shared by all sessions)
# ---------------------------------------------------------------------------
_ctx = {
    "config": Config(),
    "prompts": PromptStore(),
}

FAILURE_NOTICES = {
    "analyze_style": "Ошибка при анализе стиля. Проверьте API ключ.",
    "start_conversation": "Ошибка при создании структуры.",
    "request_structure": "Ошибка при создании структуры.",
    "continue_script": "Ошибка при генерации части сценария.",
    "review": "Ошибка рецензии.",
    "detect_cliches": "Ошибка поиска клише.",
    "fix_cliches": "Ошибка исправления.",
    "apply_humor": "Ошибка добавления юмора.",
    "free_edit": "Ошибка редактирования.",
}
CLICHE_FORMAT_NOTICE = "Не удалось распознать клише (AI вернул некорректный формат). Попробуйте снова."
WHOLE_SCRIPT = "all"


def _notify(error: ScriptosaurError) -> None:
    if isinstance(error, ClicheFormatError):
        gr.Warning(CLICHE_FORMAT_NOTICE)
    elif isinstance(error, GatewayError):
        gr.Warning(FAILURE_NOTICES.get(error.operation, f"Ошибка: {error.operation}"))
    elif isinstance(error, WorkflowBusyError):
        gr.Warning("Подождите, предыдущий запрос еще выполняется.")
    else:
        gr.Warning(str(error))


def _new_workflow(request: Optional[gr.Request]) -> Workflow:
    cfg = _ctx["config"]
    cookies = dict(request.cookies) if request is not None and request.cookies else None
    session_id = uuid.uuid4().hex[:8]
    gateway = LLMGateway(
        api_key=resolve_api_key(cookies, cfg.gemini.api_key),
        temperature=cfg.gemini.temperature,
        session=session_id,
    )
    models = list(cfg.gemini.models)
    state = WorkflowState(selected_model=cfg.gemini.default_model)
    return Workflow(gateway, _ctx["prompts"], models=models, state=state, session_id=session_id)


def _session(workflow: Optional[Workflow], request: Optional[gr.Request]) -> Workflow:
    return workflow if workflow is not None else _new_workflow(request)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
def step_indicator(step: Step) -> str:
    """Markdown progress line, e.g. ``✓ Стиль → **2. Структура** → 3. Генерация``."""
    steps = STEP_ORDER[1:]
    if step == Step.SETUP:
        current = -1
    else:
        current = steps.index(step)
    parts = []
    for idx, s in enumerate(steps):
        if idx < current:
            parts.append(f"✓ {s.label}")
        elif idx == current:
            parts.append(f"**{idx + 1}. {s.label}**")
        else:
            parts.append(f"{idx + 1}. {s.label}")
    return " → ".join(parts)


def _blocks_markdown(state: WorkflowState) -> str:
    blocks = state.blocks
    if not blocks:
        return '*Нажмите "Генерировать блок", чтобы начать написание сценария по плану.*'
    return "\n\n".join(f"#### Блок {i}\n\n{text}" for i, text in enumerate(blocks, 1))


def _target_choices(state: WorkflowState) -> list:
    choices = [("Весь текст", WHOLE_SCRIPT)]
    choices += [(f"Блок {i}", str(i - 1)) for i in range(1, len(state.blocks) + 1)]
    return choices


def _render(workflow: Workflow) -> tuple:
    state = workflow.state
    tools = state.tools
    target = WHOLE_SCRIPT if state.target_block is None else str(state.target_block)
    block_text = "" if state.target_block is None else state.blocks[state.target_block]
    cliche_choices = [
        (f"{c.type} ({c.severity}/10): «{c.text}» → {c.suggestion}", str(c.id))
        for c in tools.cliches
    ]
    show_cliches = tools.active_tool == Tool.CLICHE
    return (
        workflow,
        step_indicator(state.step),
        f"Автор: {state.blogger_name}" if state.blogger_name else "",
        gr.update(value=state.selected_model, choices=workflow.models),
        gr.update(visible=state.step == Step.SETUP),
        gr.update(visible=state.step == Step.STYLE_ANALYSIS),
        gr.update(visible=state.step == Step.STRUCTURE),
        gr.update(visible=state.step == Step.GENERATION),
        gr.update(visible=state.step == Step.POST_PROCESSING),
        state.structure,
        _blocks_markdown(state),
        state.generated_script,
        gr.update(choices=_target_choices(state), value=target),
        block_text,
        gr.update(
            choices=cliche_choices,
            value=[str(c.id) for c in tools.cliches if c.selected],
            visible=show_cliches and bool(tools.cliches),
        ),
        gr.update(visible=show_cliches and bool(tools.cliches)),
        tools.review_result if tools.review_result else "",
        gr.update(visible=tools.active_tool is not None),
        workflow.copy_text(),
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------
def _on_load(workflow, request: gr.Request):
    workflow = _session(workflow, request)
    cfg = _ctx["config"]
    if cfg.ui.auto_start and workflow.state.step == Step.SETUP and workflow.gateway.api_key:
        logger.info("Credential found, skipping setup")
        workflow.confirm_setup()
    return _render(workflow)


def _on_model_change(workflow, model, request: gr.Request):
    workflow = _session(workflow, request)
    try:
        workflow.select_model(model)
    except ScriptosaurError as e:
        _notify(e)
    return workflow


def _on_start(workflow, model, api_key, request: gr.Request):
    workflow = _session(workflow, request)
    if api_key and api_key.strip():
        workflow.gateway.api_key = api_key.strip()
    if not workflow.gateway.api_key:
        gr.Warning("API ключ не найден: укажите его или задайте GEMINI_API_KEY.")
        return _render(workflow)
    try:
        workflow.confirm_setup(model)
    except ScriptosaurError as e:
        _notify(e)
    return _render(workflow)


def _on_analyze(workflow, name, current_style, request: gr.Request):
    workflow = _session(workflow, request)
    try:
        return workflow, workflow.analyze_style(name)
    except ScriptosaurError as e:
        _notify(e)
        return workflow, current_style


def _on_accept_style(workflow, name, style, request: gr.Request):
    workflow = _session(workflow, request)
    try:
        workflow.accept_style(name, style)
    except ScriptosaurError as e:
        _notify(e)
    return _render(workflow)


def _on_build_structure(workflow, topic, current_structure, request: gr.Request):
    workflow = _session(workflow, request)
    try:
        return workflow, workflow.build_structure(topic)
    except ScriptosaurError as e:
        _notify(e)
        return workflow, current_structure


def _on_accept_structure(workflow, structure, request: gr.Request):
    workflow = _session(workflow, request)
    try:
        workflow.accept_structure(structure)
    except ScriptosaurError as e:
        _notify(e)
    return _render(workflow)


def _on_next_block(workflow, instruction, request: gr.Request):
    workflow = _session(workflow, request)
    try:
        workflow.generate_next_block(instruction or "")
        instruction = ""
    except ScriptosaurError as e:
        _notify(e)
    return workflow, _blocks_markdown(workflow.state), instruction


def _on_finish(workflow, request: gr.Request):
    workflow = _session(workflow, request)
    try:
        workflow.finish()
    except ScriptosaurError as e:
        _notify(e)
    return _render(workflow)


def _on_save_script(workflow, text, request: gr.Request):
    workflow = _session(workflow, request)
    try:
        workflow.edit_script(text)
    except ScriptosaurError as e:
        _notify(e)
    return _render(workflow)


def _on_select_target(workflow, target, request: gr.Request):
    workflow = _session(workflow, request)
    try:
        workflow.select_target(None if target in (None, WHOLE_SCRIPT) else int(target))
    except ScriptosaurError as e:
        _notify(e)
    return _render(workflow)


def _on_save_block(workflow, text, request: gr.Request):
    workflow = _session(workflow, request)
    index = workflow.state.target_block
    if index is None:
        gr.Warning("Выберите блок для редактирования.")
        return _render(workflow)
    try:
        workflow.update_block(index, text)
    except ScriptosaurError as e:
        _notify(e)
    return _render(workflow)


def _run_tool(workflow, action, success: Optional[str] = None):
    try:
        action()
        if success:
            gr.Info(success)
    except ScriptosaurError as e:
        _notify(e)
    return _render(workflow)


def _on_review(workflow, request: gr.Request):
    workflow = _session(workflow, request)
    return _run_tool(workflow, workflow.review)


def _on_detect(workflow, request: gr.Request):
    workflow = _session(workflow, request)

    def detect():
        if not workflow.detect_cliches():
            gr.Info("Клише не найдено!")

    return _run_tool(workflow, detect)


def _on_close_tool(workflow, request: gr.Request):
    workflow = _session(workflow, request)
    return _run_tool(workflow, workflow.close_tool)


def _on_cliche_selection(workflow, selected, request: gr.Request):
    workflow = _session(workflow, request)
    workflow.set_cliche_selection(int(v) for v in (selected or []))
    return workflow


def _on_fix(workflow, request: gr.Request):
    workflow = _session(workflow, request)
    return _run_tool(workflow, workflow.fix_cliches, "Клише исправлены!")


def _on_humor(workflow, request: gr.Request):
    workflow = _session(workflow, request)
    return _run_tool(workflow, workflow.apply_humor, "Юмор добавлен!")


def _on_free_edit(workflow, instruction, request: gr.Request):
    workflow = _session(workflow, request)
    return _run_tool(workflow, lambda: workflow.free_edit(instruction or ""), "Текст отредактирован.")


def _export_script(workflow):
    if workflow is None or not workflow.state.blocks:
        return None
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", suffix=".txt", prefix="scriptosaur_", delete=False
    ) as f:
        f.write(workflow.copy_text())
        path = f.name
    logger.info(f"Script exported to {path}")
    return path


def _refresh_log(workflow) -> str:
    if workflow is None or not workflow.gateway.logs:
        return "Запросов пока не было."
    return "\n".join(
        f"[{'ok' if l.ok else 'FAIL'}] {l.operation} ({l.model}, {l.elapsed_seconds:.1f}s) "
        f"| prompt: {l.prompt_preview[:80]}... "
        f"| response: {l.response_preview[:80]}..."
        for l in workflow.gateway.logs
    )


# Prompt editor ------------------------------------------------------------
def _prompt_status(key: PromptKey) -> str:
    store = _ctx["prompts"]
    return "Изменен пользователем" if store.is_overridden(key) else "Значение по умолчанию"


def _on_prompt_pick(key):
    key = PromptKey(key)
    return _ctx["prompts"].get(key), _prompt_status(key)


def _on_prompt_save(key, text):
    key = PromptKey(key)
    _ctx["prompts"].set(key, text)
    return _prompt_status(key)


def _on_prompt_reset(key):
    key = PromptKey(key)
    return _ctx["prompts"].reset(key), _prompt_status(key)


# ---------------------------------------------------------------------------
# Build the Gradio app
# ---------------------------------------------------------------------------
def create_app(config: Optional[Config] = None, prompts: Optional[PromptStore] = None) -> gr.Blocks:
    config = config or Config()
    _ctx["config"] = config
    _ctx["prompts"] = prompts or PromptStore(config.storage.prompts_path)
    models = list(config.gemini.models)

    with gr.Blocks(title="Scriptosaur") as app:
        workflow_state = gr.State(None)

        with gr.Row():
            gr.Markdown("# Scriptosaur 🦕")
            model_dd = gr.Dropdown(choices=models, value=config.gemini.default_model, label="Модель")
        author_md = gr.Markdown()
        step_md = gr.Markdown()

        with gr.Tab("Сценарий"):
            # ---- Setup ----
            with gr.Column(visible=True) as setup_col:
                gr.Markdown("## Настройка")
                api_key_box = gr.Textbox(
                    label="Gemini API Key (необязательно, если задан в cookie или окружении)",
                    type="password",
                )
                start_btn = gr.Button("Начать", variant="primary")

            # ---- Style analysis ----
            with gr.Column(visible=False) as style_col:
                gr.Markdown(
                    "## 1. Анализ стиля\n"
                    "Введите имя блогера или название канала. AI создаст подробный промпт, описывающий его стиль."
                )
                with gr.Row():
                    name_box = gr.Textbox(
                        label="Автор / канал",
                        placeholder="Например: Utopia Show, Kuplinov...",
                        scale=4,
                    )
                    analyze_btn = gr.Button("Анализировать", variant="primary", scale=1)
                style_box = gr.Textbox(
                    label="Результат анализа (можно редактировать)", lines=16, interactive=True
                )
                accept_style_btn = gr.Button("Принять стиль и продолжить →", variant="primary")

            # ---- Structure ----
            with gr.Column(visible=False) as structure_col:
                gr.Markdown("## 2. Тема и структура\nО чем будет ваше видео? AI предложит поэпизодный план.")
                with gr.Row():
                    topic_box = gr.Textbox(
                        label="Тема видео",
                        placeholder="Например: Почему мы боимся темноты?",
                        scale=4,
                    )
                    build_btn = gr.Button("Создать план", variant="primary", scale=1)
                structure_box = gr.Textbox(
                    label="Поэпизодный план (отредактируйте, чтобы AI следовал ему)",
                    lines=16,
                    interactive=True,
                )
                accept_structure_btn = gr.Button("Утвердить план и начать писать →", variant="primary")

            # ---- Generation ----
            with gr.Column(visible=False) as generation_col:
                with gr.Row():
                    with gr.Column(scale=1):
                        gr.Markdown("### План сценария")
                        plan_md = gr.Markdown()
                    with gr.Column(scale=2):
                        gr.Markdown("### Сценарий")
                        blocks_md = gr.Markdown()
                with gr.Row():
                    instruction_box = gr.Textbox(
                        label="Доп. инструкция (опционально)",
                        placeholder="'Пиши про пункт 2', 'Добавь шутку'...",
                        scale=4,
                    )
                    next_btn = gr.Button("Генерировать блок", variant="primary", scale=1)
                finish_btn = gr.Button("Завершить и обработать →")

            # ---- Post-processing ----
            with gr.Column(visible=False) as post_col:
                with gr.Row():
                    with gr.Column(scale=2):
                        script_box = gr.Textbox(label="Финальный текст", lines=24, interactive=True)
                        save_script_btn = gr.Button("Сохранить текст")
                        target_dd = gr.Dropdown(
                            choices=[("Весь текст", WHOLE_SCRIPT)],
                            value=WHOLE_SCRIPT,
                            label="Применять инструменты к",
                        )
                        block_box = gr.Textbox(label="Выбранный блок", lines=8, interactive=True)
                        save_block_btn = gr.Button("Сохранить блок")
                    with gr.Column(scale=1):
                        gr.Markdown("### Инструменты")
                        cliche_btn = gr.Button("🧹 Убрать AI-клише")
                        humor_btn = gr.Button("🎭 Добавить юмора")
                        review_btn = gr.Button("🧐 Рецензия")
                        edit_instruction = gr.Textbox(label="Свободная правка", lines=2)
                        edit_btn = gr.Button("✏️ Применить правку")
                        cliche_group = gr.CheckboxGroup(label="Найденные клише", visible=False)
                        fix_btn = gr.Button("Исправить выбранное", variant="stop", visible=False)
                        review_md = gr.Markdown()
                        close_tool_btn = gr.Button("Закрыть панель", size="sm", visible=False)
                with gr.Accordion("Копировать весь текст", open=False):
                    copy_box = gr.Textbox(label="Текст без разделителей", lines=10, interactive=False)
                    export_btn = gr.Button("Скачать .txt")
                    export_file = gr.File(label="Файл")

        # ---- Prompt editor ----
        with gr.Tab("Промпты"):
            gr.Markdown("## Редактор промптов\nИзменения сохраняются сразу и действуют для следующих запросов.")
            first_key = PromptKey.STYLE_ANALYSIS_SYSTEM
            prompt_dd = gr.Dropdown(
                choices=[(k.label, k.value) for k in PromptKey],
                value=first_key.value,
                label="Промпт",
            )
            prompt_box = gr.Textbox(label="Текст", lines=18, value=_ctx["prompts"].get(first_key))
            prompt_status = gr.Markdown(_prompt_status(first_key))
            with gr.Row():
                prompt_save_btn = gr.Button("Сохранить", variant="primary")
                prompt_reset_btn = gr.Button("Сбросить к умолчанию")

            prompt_dd.change(_on_prompt_pick, inputs=[prompt_dd], outputs=[prompt_box, prompt_status])
            prompt_save_btn.click(_on_prompt_save, inputs=[prompt_dd, prompt_box], outputs=[prompt_status])
            prompt_reset_btn.click(_on_prompt_reset, inputs=[prompt_dd], outputs=[prompt_box, prompt_status])

        # ---- Call log ----
        with gr.Tab("Журнал"):
            refresh_log_btn = gr.Button("Обновить")
            log_box = gr.Textbox(label="Запросы к Gemini", lines=24, interactive=False)
            refresh_log_btn.click(_refresh_log, inputs=[workflow_state], outputs=[log_box])

        view = [
            workflow_state,
            step_md,
            author_md,
            model_dd,
            setup_col,
            style_col,
            structure_col,
            generation_col,
            post_col,
            plan_md,
            blocks_md,
            script_box,
            target_dd,
            block_box,
            cliche_group,
            fix_btn,
            review_md,
            close_tool_btn,
            copy_box,
        ]

        app.load(_on_load, inputs=[workflow_state], outputs=view)
        model_dd.change(_on_model_change, inputs=[workflow_state, model_dd], outputs=[workflow_state])
        start_btn.click(_on_start, inputs=[workflow_state, model_dd, api_key_box], outputs=view)

        analyze_btn.click(
            _on_analyze, inputs=[workflow_state, name_box, style_box], outputs=[workflow_state, style_box]
        )
        accept_style_btn.click(_on_accept_style, inputs=[workflow_state, name_box, style_box], outputs=view)

        build_btn.click(
            _on_build_structure,
            inputs=[workflow_state, topic_box, structure_box],
            outputs=[workflow_state, structure_box],
        )
        accept_structure_btn.click(_on_accept_structure, inputs=[workflow_state, structure_box], outputs=view)

        next_btn.click(
            _on_next_block,
            inputs=[workflow_state, instruction_box],
            outputs=[workflow_state, blocks_md, instruction_box],
        )
        finish_btn.click(_on_finish, inputs=[workflow_state], outputs=view)

        save_script_btn.click(_on_save_script, inputs=[workflow_state, script_box], outputs=view)
        target_dd.input(_on_select_target, inputs=[workflow_state, target_dd], outputs=view)
        save_block_btn.click(_on_save_block, inputs=[workflow_state, block_box], outputs=view)

        review_btn.click(_on_review, inputs=[workflow_state], outputs=view)
        cliche_btn.click(_on_detect, inputs=[workflow_state], outputs=view)
        cliche_group.input(_on_cliche_selection, inputs=[workflow_state, cliche_group], outputs=[workflow_state])
        fix_btn.click(_on_fix, inputs=[workflow_state], outputs=view)
        close_tool_btn.click(_on_close_tool, inputs=[workflow_state], outputs=view)
        humor_btn.click(_on_humor, inputs=[workflow_state], outputs=view)
        edit_btn.click(_on_free_edit, inputs=[workflow_state, edit_instruction], outputs=view)
        export_btn.click(_export_script, inputs=[workflow_state], outputs=[export_file])

    return app


def launch(config: Config) -> None:
    app = create_app(config)
    app.launch(
        server_name=config.ui.host,
        server_port=config.ui.port,
        share=config.ui.share,
        theme=gr.themes.Soft(),
    )
