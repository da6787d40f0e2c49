from .detect_project import detect_project_type, count_source_files
from .collect_sources import discover_source_files, build_exclusion_rules
from .project_structure import get_file_tree, ProjectStructureProvider
from .generate_tests import GenerationService, build_generation_prompt, clean_generated_code
from .write_files import write_test_file, ensure_bootstrap_file, TestFileWriter
from .run_tests import TestRunner, build_run_commands, find_production_code_path
from .task_reporter import build_generation_report
