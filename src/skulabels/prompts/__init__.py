from skulabels.prompts.label_prompts import load_template, render_label_prompts

__all__ = ["load_template", "render_label_prompts"]
