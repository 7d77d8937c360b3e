import json

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from builder.forms import FinderForm
from builder.services.finder import load_price_tables, load_templates, rank


class Command(BaseCommand):
    help = (
        "Rank the build templates for a profile. Example: "
        "--budget 2500 --purpose gaming --gaming-detail 1440p_high"
    )

    def add_arguments(self, parser):
        parser.add_argument("--budget", type=str, default="")
        parser.add_argument("--purpose", default="")
        parser.add_argument("--gaming-detail", dest="gaming_detail", default="")
        parser.add_argument(
            "--creative-detail", dest="creative_detail", default=""
        )
        parser.add_argument(
            "--content-creation-detail",
            dest="content_creation_detail",
            default="",
        )
        parser.add_argument(
            "--performance", dest="performance_ambition", default=""
        )
        parser.add_argument(
            "--json",
            action="store_true",
            dest="as_json",
            help="Print the ranked builds as JSON",
        )

    def handle(self, *args, **options):
        form = FinderForm(
            {
                key: options.get(key) or ""
                for key in (
                    "budget",
                    "purpose",
                    "gaming_detail",
                    "creative_detail",
                    "content_creation_detail",
                    "performance_ambition",
                )
            }
        )
        if not form.is_valid():
            errors = "; ".join(
                f"{field}: {' '.join(e['message'] for e in errs)}"
                for field, errs in form.errors.get_json_data().items()
            )
            raise CommandError(f"Invalid profile: {errors}")

        profile = form.to_profile()
        builds = rank(
            profile,
            load_templates(getattr(settings, "BUILDER_TEMPLATES_PATH", None)),
            load_price_tables(
                getattr(settings, "BUILDER_PRICE_TABLES_PATH", None)
            ),
        )

        if options["as_json"]:
            self.stdout.write(
                json.dumps([b.to_dict() for b in builds], indent=2)
            )
            return

        for build in builds:
            line = "{:<20} {:<26} score {:>3}  price {}".format(
                build.label,
                build.template.name,
                build.score,
                build.accurate_price,
            )
            self.stdout.write(line)
            if build.unmatched_specs:
                self.stdout.write(
                    self.style.WARNING(
                        "    unpriced specs: " + ", ".join(build.unmatched_specs)
                    )
                )
        self.stdout.write(
            self.style.SUCCESS(
                f"Ranked {len(builds)} build(s) for {profile.purpose} "
                f"at budget {profile.budget:g}."
            )
        )
