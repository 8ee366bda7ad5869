"""Example usage script for the HealthGuard pipeline."""

import argparse
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def main():
    """Run a single analysis."""
    parser = argparse.ArgumentParser(description="Analyze a health claim")
    parser.add_argument("--url", help="URL of the page making the claim")
    parser.add_argument("--text", help="Claim text")
    parser.add_argument("--pdf-name", help="File name of an attached PDF")
    parser.add_argument("--pdf-size", type=int, default=0, help="Size of the PDF in bytes")
    parser.add_argument("--submitted-by", help="Submitter identity")
    args = parser.parse_args()

    # Import after environment is loaded
    from healthguard.agents.normalizer import normalize_input
    from healthguard.graph import create_orchestrator

    pdf = {"name": args.pdf_name, "size": args.pdf_size} if args.pdf_name else None
    analysis_input = normalize_input(url=args.url, text=args.text, pdf=pdf)

    if analysis_input.is_empty():
        analysis_input = normalize_input(
            text="Drinking a teaspoon of colloidal silver daily prevents the flu."
        )

    print("=" * 60)
    print("HealthGuard - Health Claim Safety Analysis")
    print("=" * 60)
    print(f"\nInput:\n{analysis_input.model_dump_json(indent=2)}\n")
    print("-" * 60)
    print("Running analysis...\n")

    orchestrator = create_orchestrator()
    result = orchestrator.analyze_safely(analysis_input, args.submitted_by)

    print("\n" + "=" * 60)
    print("ANALYSIS RESULT")
    print("=" * 60)

    print(f"\nVerdict: {result.verdict.value.upper()}")
    print(f"Confidence: {result.confidence:.1%}")
    print(f"\nReasoning: {result.reasoning}")

    print("\nCitations:")
    for i, citation in enumerate(result.citations, 1):
        print(f"  {i}. {citation.title} ({citation.url})")
        if citation.excerpt:
            print(f"     \"{citation.excerpt}\"")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
