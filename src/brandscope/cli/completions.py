from brandscope.cli.enums import PipelineName, Tab


def complete_pipeline(value: str):
    for pipeline in PipelineName.__members__.values():
        if pipeline.startswith(value):
            yield pipeline


def complete_tab(value: str):
    for tab in Tab.__members__.values():
        if tab.startswith(value):
            yield tab
