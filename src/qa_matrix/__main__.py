from qa_matrix.cli import run

run()
